import os
from dataclasses import dataclass
from functools import lru_cache


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None or not value.strip():
        return default
    return max(minimum, int(value))


def _to_extensions(value: str | None, *, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None or not value.strip():
        return default
    exts = []
    for part in value.split(","):
        part = part.strip().lower()
        if not part:
            continue
        exts.append(part if part.startswith(".") else "." + part)
    return tuple(exts) or default


@dataclass(frozen=True)
class Settings:
    content_dir: str = "beamng"
    site_dir: str = "_site"
    index_path: str = os.path.join("_site", "assets", "search.json")
    base_route: str = "/beamng"
    extensions: tuple[str, ...] = (".md",)
    index_url: str = "/assets/search.json"
    min_query_length: int = 2
    max_results: int = 10
    max_matches_per_page: int = 5
    context_words: int = 10
    lines_above: int = 3
    lines_below: int = 3
    target_words: int = 30
    cache_size: int = 128

    @property
    def proximity(self) -> int:
        # anchors closer than this many characters collapse into one snippet
        return self.context_words * 8


@lru_cache
def get_settings() -> Settings:
    site_dir = os.getenv("DOCSEARCH_SITE_DIR", "_site")
    return Settings(
        content_dir=os.getenv("DOCSEARCH_CONTENT_DIR", "beamng"),
        site_dir=site_dir,
        index_path=os.getenv(
            "DOCSEARCH_INDEX_PATH", os.path.join(site_dir, "assets", "search.json")),
        base_route=os.getenv("DOCSEARCH_BASE_ROUTE", "/beamng"),
        extensions=_to_extensions(os.getenv("DOCSEARCH_EXTENSIONS"), default=(".md",)),
        index_url=os.getenv("DOCSEARCH_INDEX_URL", "/assets/search.json"),
        min_query_length=_to_int(
            os.getenv("DOCSEARCH_MIN_QUERY_LENGTH"), default=2, minimum=1),
        max_results=_to_int(os.getenv("DOCSEARCH_MAX_RESULTS"), default=10, minimum=1),
        max_matches_per_page=_to_int(
            os.getenv("DOCSEARCH_MAX_MATCHES_PER_PAGE"), default=5, minimum=1),
        context_words=_to_int(os.getenv("DOCSEARCH_CONTEXT_WORDS"), default=10, minimum=0),
        lines_above=_to_int(os.getenv("DOCSEARCH_LINES_ABOVE"), default=3, minimum=0),
        lines_below=_to_int(os.getenv("DOCSEARCH_LINES_BELOW"), default=3, minimum=0),
        target_words=_to_int(os.getenv("DOCSEARCH_TARGET_WORDS"), default=30, minimum=0),
        cache_size=_to_int(os.getenv("DOCSEARCH_CACHE_SIZE"), default=128, minimum=0),
    )
