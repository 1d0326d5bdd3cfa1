import json
import logging
import time
from enum import Enum
from typing import Iterator, List, Optional

import httpx
from pydantic import ValidationError

from .cache import LRUCache
from .config import Settings, get_settings
from .errors import IndexUnavailableError
from .models import IndexEntry, MatchRecord, QueryState, SearchIndex, SearchResult, index_adapter
from .snippets import extract_snippet
from .utils import find_occurrences, fold, merge_anchors, normalize_query, split_words


class EngineState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class SearchEngine:
    """
    In-memory substring search over a loaded SearchIndex.

    The engine starts in LOADING, moves once to READY or UNAVAILABLE and
    never leaves that state. Searching is a synchronous linear scan; results
    keep index order.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.state = EngineState.LOADING
        self.index: SearchIndex = []
        self.reason: Optional[str] = None
        self._cache = LRUCache(self.settings.cache_size)

    @property
    def ready(self) -> bool:
        return self.state is EngineState.READY

    # ---- loading ----
    async def load(self, client: Optional[httpx.AsyncClient] = None, url: Optional[str] = None) -> EngineState:
        if self.state is not EngineState.LOADING:
            return self.state
        url = url or self.settings.index_url
        try:
            if client is None:
                async with httpx.AsyncClient(timeout=None) as own:
                    data = await self._fetch(own, url)
            else:
                data = await self._fetch(client, url)
        except IndexUnavailableError as e:
            self._fail(e)
            return self.state
        return self.load_data(data)

    def load_file(self, path: str) -> EngineState:
        if self.state is not EngineState.LOADING:
            return self.state
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            self._fail(IndexUnavailableError(f"cannot read {path}: {e}"))
            return self.state
        except ValueError as e:
            self._fail(IndexUnavailableError(f"index is not JSON: {e}"))
            return self.state
        return self.load_data(data)

    def load_data(self, data) -> EngineState:
        """Accepts an already decoded index (a list of entry dicts)."""
        if self.state is not EngineState.LOADING:
            return self.state
        try:
            self._accept(data)
        except IndexUnavailableError as e:
            self._fail(e)
        return self.state

    async def _fetch(self, client: httpx.AsyncClient, url: str):
        try:
            r = await client.get(url)
            logging.info("search index fetch status=%s url=%s", r.status_code, url)
            r.raise_for_status()
            return r.json()
        except httpx.HTTPError as e:
            raise IndexUnavailableError(f"fetch failed: {e}") from e
        except ValueError as e:
            raise IndexUnavailableError(f"index is not JSON: {e}") from e

    def _accept(self, data):
        try:
            entries = index_adapter.validate_python(data)
        except ValidationError as e:
            raise IndexUnavailableError(
                f"malformed index ({e.error_count()} errors)") from e
        if not entries:
            raise IndexUnavailableError("index has no entries")
        self.index = entries
        self.state = EngineState.READY
        logging.info("search index loaded entries=%d", len(entries))

    def _fail(self, err: Exception):
        self.index = []
        self.reason = str(err)
        self.state = EngineState.UNAVAILABLE
        logging.warning("search unavailable: %s", err)

    # ---- searching ----
    def query_state(self, query: str) -> QueryState:
        q = normalize_query(query)
        return QueryState(query=q, words=split_words(q))

    def iter_matches(self, words: List[str]) -> Iterator[MatchRecord]:
        """Yields every entry with at least one hit, in index order."""
        proximity = self.settings.proximity
        for entry in self.index:
            haystack = fold(entry.searchable_text())
            offsets: List[int] = []
            for w in words:
                offsets.extend(find_occurrences(haystack, w))
            if offsets:
                yield MatchRecord(entry=entry, anchors=merge_anchors(offsets, proximity))

    def _to_result(self, record: MatchRecord, words: List[str]) -> SearchResult:
        entry: IndexEntry = record.entry
        text = entry.searchable_text()
        anchors = record.anchors[:self.settings.max_matches_per_page]
        return SearchResult(
            title=entry.title,
            url=entry.url,
            snippets=[extract_snippet(text, a, words, self.settings) for a in anchors],
        )

    def search(self, query: str) -> Optional[List[SearchResult]]:
        """
        Runs one search pass. Returns None while the engine is not READY,
        and an empty list for queries shorter than min_query_length.
        """
        if not self.ready:
            return None
        qs = self.query_state(query)
        if len(qs.query) < self.settings.min_query_length:
            return []
        cached = self._cache.get(qs.query)
        if cached is not None:
            return list(cached)

        t0 = time.time()
        results: List[SearchResult] = []
        for record in self.iter_matches(qs.words):
            results.append(self._to_result(record, qs.words))
            if len(results) >= self.settings.max_results:
                break
        self._cache.set(qs.query, results)
        dt = (time.time() - t0) * 1000
        logging.debug(
            'q="%s" hits=%d/%d latency_ms=%.1f', qs.query, len(results), len(self.index), dt)
        return list(results)
