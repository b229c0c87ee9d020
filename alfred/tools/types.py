"""
Types for Alfred's tools
"""

from typing import TypedDict


class ToolResult(TypedDict, total=False):
    """Result returned by tool operations"""

    formatted: str
    totalResults: int
    resultsShared: int
    isError: bool
