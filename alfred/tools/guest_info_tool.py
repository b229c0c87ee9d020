"""
Guest Info Tool - keyword search over the gala invitee list

Each invitee becomes one text document (name, relation, description, email)
and is ranked with BM25F against the query.
"""

import asyncio
import logging
import re
import threading
from typing import Any, Iterable

from datasets import load_dataset
from whoosh import scoring
from whoosh.analysis import StemmingAnalyzer
from whoosh.fields import ID, TEXT, Schema
from whoosh.filedb.filestore import RamStorage
from whoosh.qparser import MultifieldParser, OrGroup

from alfred.tools.types import ToolResult

logger = logging.getLogger(__name__)

DEFAULT_DATASET = "agents-course/unit3-invitees"
DEFAULT_SPLIT = "train"
DEFAULT_TOP_K = 3

NO_MATCH_MESSAGE = "No matching guest information found."

GUEST_FIELDS = ("name", "relation", "description", "email")

# ---------------------------------------------------------------------------
# Caches
# ---------------------------------------------------------------------------

_index_cache: dict[tuple[str, str], "GuestIndex"] = {}
# A thread lock, so the cache can be shared by callers on different event loops
_cache_lock = threading.Lock()


def guest_to_document(guest: dict[str, Any]) -> dict[str, str]:
    """Turn one invitee row into a searchable document."""
    text = "\n".join(
        [
            f"Name: {guest.get('name', '')}",
            f"Relation: {guest.get('relation', '')}",
            f"Description: {guest.get('description', '')}",
            f"Email: {guest.get('email', '')}",
        ]
    )
    return {"name": str(guest.get("name", "")), "text": text}


def load_guests(dataset: str = DEFAULT_DATASET, split: str = DEFAULT_SPLIT) -> list[dict[str, Any]]:
    """Load the invitee rows from the Hub."""
    logger.info(f"Loading guest dataset {dataset} ({split})")
    rows = load_dataset(dataset, split=split)
    return [{field: row.get(field, "") for field in GUEST_FIELDS} for row in rows]


def _clean_query(query: str) -> str:
    # Drop query-syntax characters (wildcards, quotes, field markers) and
    # lowercase so AND/OR/NOT are read as plain words.
    return re.sub(r"[^\w\s]", " ", query).lower().strip()


class GuestIndex:
    """In-memory BM25F index over invitee documents."""

    def __init__(self, guests: Iterable[dict[str, Any]]):
        analyzer = StemmingAnalyzer()
        self.schema = Schema(
            doc_id=ID(stored=True, unique=True),
            name=TEXT(stored=True, analyzer=analyzer),
            text=TEXT(stored=True, analyzer=analyzer),
        )
        self.index = RamStorage().create_index(self.schema)
        self.size = 0

        writer = self.index.writer()
        for i, guest in enumerate(guests):
            doc = guest_to_document(guest)
            writer.add_document(doc_id=str(i), name=doc["name"], text=doc["text"])
            self.size += 1
        writer.commit()

        self.parser = MultifieldParser(
            ["name", "text"],
            schema=self.schema,
            fieldboosts={"name": 2.0, "text": 1.0},
            group=OrGroup,
        )

    def search(self, query: str, limit: int = DEFAULT_TOP_K) -> list[dict[str, Any]]:
        """Return up to `limit` documents ranked by relevance."""
        cleaned = _clean_query(query)
        if not cleaned:
            return []

        query_obj = self.parser.parse(cleaned)
        with self.index.searcher(weighting=scoring.BM25F()) as searcher:
            results = searcher.search(query_obj, limit=limit)
            return [
                {
                    "name": hit["name"],
                    "text": hit["text"],
                    "score": round(hit.score, 2),
                }
                for hit in results
            ]


def _build_guest_index(dataset: str, split: str) -> GuestIndex:
    key = (dataset, split)
    with _cache_lock:
        if key in _index_cache:
            return _index_cache[key]

        index = GuestIndex(load_guests(dataset, split))
        logger.info(f"Indexed {index.size} guests from {dataset}")
        _index_cache[key] = index
        return index


async def get_guest_index(
    dataset: str = DEFAULT_DATASET, split: str = DEFAULT_SPLIT
) -> GuestIndex:
    """Build or retrieve the cached index for a dataset split."""
    index = _index_cache.get((dataset, split))
    if index is not None:
        return index
    return await asyncio.to_thread(_build_guest_index, dataset, split)


def clear_guest_cache() -> None:
    _index_cache.clear()


class GuestInfoTool:
    """Tool for looking up gala guests by name or relation."""

    def __init__(
        self,
        dataset: str = DEFAULT_DATASET,
        split: str = DEFAULT_SPLIT,
        top_k: int = DEFAULT_TOP_K,
        guests: list[dict[str, Any]] | None = None,
    ):
        self.dataset = dataset
        self.split = split
        self.top_k = top_k
        self._index = GuestIndex(guests) if guests is not None else None

    async def _get_index(self) -> GuestIndex:
        if self._index is None:
            self._index = await get_guest_index(self.dataset, self.split)
        return self._index

    async def execute(self, args: dict[str, Any]) -> ToolResult:
        query = args.get("query", "")
        if not isinstance(query, str) or not query.strip():
            return {"formatted": "Error: No query provided", "isError": True}

        try:
            index = await self._get_index()
        except Exception as e:
            logger.warning(f"Failed to load guest dataset {self.dataset}: {e}")
            return {
                "formatted": f"Error loading guest list: {str(e)}",
                "isError": True,
            }

        matches = index.search(query, limit=self.top_k)
        if not matches:
            return {
                "formatted": NO_MATCH_MESSAGE,
                "totalResults": 0,
                "resultsShared": 0,
                "isError": False,
            }

        return {
            "formatted": "\n\n".join(match["text"] for match in matches),
            "totalResults": len(matches),
            "resultsShared": len(matches),
            "isError": False,
        }

    async def handler(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        result = await self.execute(arguments)
        return result["formatted"], not result.get("isError", False)


# Tool specification
GUEST_INFO_TOOL_SPEC = {
    "name": "guest_info_retriever",
    "description": (
        "Retrieves detailed information about gala guests based on their name or relation. "
        "Returns name, relation, description and email for the best matching guests."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The name or relation of the guest you want information about.",
            }
        },
        "required": ["query"],
    },
}
