"""
Unit tests for hub_stats_tool.
Based on real usage: {"author": "facebook"}
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

from alfred.tools.hub_stats_tool import HubStatsTool


def _tool_with_models(models=None, error=None) -> HubStatsTool:
    tool = HubStatsTool()
    tool.api = MagicMock()
    if error is not None:
        tool.api.list_models.side_effect = error
    else:
        tool.api.list_models.return_value = iter(models or [])
    return tool


class TestHubStats:
    async def test_reports_most_downloaded_model(self):
        tool = _tool_with_models(
            [SimpleNamespace(id="facebook/esmfold_v1", downloads=13202321)]
        )

        output, success = await tool.handler({"author": "facebook"})

        assert success
        assert (
            output
            == "The most downloaded model by facebook is facebook/esmfold_v1 with 13,202,321 downloads."
        )
        tool.api.list_models.assert_called_once_with(
            author="facebook", sort="downloads", direction=-1, limit=1
        )

    async def test_no_models(self):
        tool = _tool_with_models([])

        output, success = await tool.handler({"author": "nobody"})

        assert success
        assert output == "No models found for author nobody."

    async def test_api_error(self):
        tool = _tool_with_models(error=RuntimeError("rate limited"))

        output, success = await tool.handler({"author": "google"})

        assert not success
        assert output == "Error fetching models for google: rate limited"

    async def test_missing_author(self):
        tool = _tool_with_models([])

        output, success = await tool.handler({"author": ""})

        assert not success
        tool.api.list_models.assert_not_called()
