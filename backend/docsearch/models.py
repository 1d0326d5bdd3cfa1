from pydantic import BaseModel, TypeAdapter
from typing import List, Optional


class IndexEntry(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    url: str = ""

    def searchable_text(self) -> str:
        """Title and content joined by a newline; missing fields are skipped."""
        return "\n".join(p for p in (self.title, self.content) if p)


SearchIndex = List[IndexEntry]
index_adapter = TypeAdapter(SearchIndex)


class QueryState(BaseModel):
    query: str
    words: List[str]


class MatchRecord(BaseModel):
    entry: IndexEntry
    anchors: List[int]


class SearchResult(BaseModel):
    title: Optional[str] = None
    url: str
    snippets: List[str]  # HTML with <mark> tags


class IndexStats(BaseModel):
    entries: int
    index_path: str
    built: bool = False
