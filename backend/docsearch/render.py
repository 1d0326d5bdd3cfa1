import html
from typing import List

from .models import SearchResult

NO_RESULTS_HTML = "<p>No results found.</p>"
UNAVAILABLE_HTML = "<p>Search unavailable.</p>"


def render_result(r: SearchResult) -> str:
    label = html.escape(r.title or r.url)
    href = html.escape(r.url, quote=True)
    parts = [f'<div class="search-result"><a href="{href}">{label}</a>']
    for s in r.snippets:
        parts.append(f'<p class="search-snippet">{s}</p>')
    parts.append("</div>")
    return "".join(parts)


def render_results(results: List[SearchResult]) -> str:
    if not results:
        return NO_RESULTS_HTML
    return "".join(render_result(r) for r in results)
