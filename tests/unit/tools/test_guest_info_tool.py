"""
Unit tests for guest_info_tool.
Based on real usage: {"query": "Lady Ada Lovelace"}, {"query": "best friend"}
"""

import asyncio
from unittest.mock import patch

from alfred.tools.guest_info_tool import (
    NO_MATCH_MESSAGE,
    GuestIndex,
    GuestInfoTool,
    guest_to_document,
)


class TestGuestDocuments:
    def test_document_text_has_all_fields_in_order(self, gala_guests):
        doc = guest_to_document(gala_guests[0])

        assert doc["name"] == "Ada Lovelace"
        assert doc["text"].split("\n") == [
            "Name: Ada Lovelace",
            "Relation: best friend",
            f"Description: {gala_guests[0]['description']}",
            "Email: ada.lovelace@example.com",
        ]


class TestGuestSearch:
    async def test_finds_guest_by_name(self, gala_guests):
        tool = GuestInfoTool(guests=gala_guests)

        output, success = await tool.handler({"query": "Lady Ada Lovelace"})

        assert success
        assert output == guest_to_document(gala_guests[0])["text"]

    async def test_finds_guest_by_relation_best_match_first(self, gala_guests):
        tool = GuestInfoTool(guests=gala_guests)

        output, success = await tool.handler({"query": "best friend"})

        assert success
        documents = output.split("\n\n")
        assert documents[0].startswith("Name: Ada Lovelace")
        assert any(doc.startswith("Name: Dr. Nikola Tesla") for doc in documents)

    async def test_top_k_limits_results(self, gala_guests):
        tool = GuestInfoTool(guests=gala_guests, top_k=1)

        result = await tool.execute({"query": "friend"})

        assert result["totalResults"] == 1
        assert result["formatted"].count("Name: ") == 1

    async def test_no_match_message(self, gala_guests):
        tool = GuestInfoTool(guests=gala_guests)

        output, success = await tool.handler({"query": "Zorg destroyer"})

        assert success
        assert output == NO_MATCH_MESSAGE

    async def test_query_syntax_characters_are_ignored(self, gala_guests):
        tool = GuestInfoTool(guests=gala_guests)

        output, success = await tool.handler({"query": "Who is Marie Curie?"})

        assert success
        assert output.startswith("Name: Marie Curie")

    async def test_punctuation_only_query_matches_nothing(self, gala_guests):
        tool = GuestInfoTool(guests=gala_guests)

        output, success = await tool.handler({"query": "???"})

        assert success
        assert output == NO_MATCH_MESSAGE

    async def test_empty_query_is_an_error(self, gala_guests):
        tool = GuestInfoTool(guests=gala_guests)

        output, success = await tool.handler({"query": "   "})

        assert not success
        assert "No query" in output

    def test_index_search_returns_scores(self, gala_guests):
        index = GuestIndex(gala_guests)

        hits = index.search("pigeons")

        assert index.size == 3
        assert [hit["name"] for hit in hits] == ["Dr. Nikola Tesla"]
        assert hits[0]["score"] > 0


class TestGuestDatasetLoading:
    async def test_loads_dataset_once_and_caches(self, gala_guests):
        with patch(
            "alfred.tools.guest_info_tool.load_dataset", return_value=gala_guests
        ) as mock_load:
            first = GuestInfoTool(dataset="agents-course/unit3-invitees")
            second = GuestInfoTool(dataset="agents-course/unit3-invitees")

            output, success = await first.handler({"query": "Tesla"})
            await second.handler({"query": "Curie"})

        assert success
        assert output.startswith("Name: Dr. Nikola Tesla")
        mock_load.assert_called_once_with("agents-course/unit3-invitees", split="train")

    async def test_dataset_failure_is_reported(self):
        with patch(
            "alfred.tools.guest_info_tool.load_dataset",
            side_effect=ConnectionError("hub unreachable"),
        ):
            tool = GuestInfoTool(dataset="missing/dataset")
            output, success = await tool.handler({"query": "Ada"})

        assert not success
        assert "hub unreachable" in output

    async def test_concurrent_first_lookups_load_once(self, gala_guests):
        with patch(
            "alfred.tools.guest_info_tool.load_dataset", return_value=gala_guests
        ) as mock_load:
            tools = [GuestInfoTool() for _ in range(3)]
            results = await asyncio.gather(
                *(tool.handler({"query": "Curie"}) for tool in tools)
            )

        assert all(success for _, success in results)
        mock_load.assert_called_once()

    def test_cache_shared_across_event_loops(self, gala_guests):
        with patch(
            "alfred.tools.guest_info_tool.load_dataset", return_value=gala_guests
        ) as mock_load:
            first = asyncio.run(GuestInfoTool().handler({"query": "Ada"}))
            second = asyncio.run(GuestInfoTool().handler({"query": "Tesla"}))

        assert first[1] and second[1]
        assert second[0].startswith("Name: Dr. Nikola Tesla")
        mock_load.assert_called_once()
