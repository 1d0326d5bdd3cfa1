import re
from typing import List

# a tag, or a character entity; highlighting never rewrites inside either
_markup_re = re.compile(r"(<[^>]*>|&#?[A-Za-z0-9]+;)")


def normalize_query(q: str) -> str:
    return q.strip().lower()


def split_words(q: str) -> List[str]:
    return [w for w in q.split() if w]


def fold(text: str) -> str:
    """
    Lowercase text without changing its length, so offsets found in the
    folded haystack index the original text too.

    Known limitation: a character whose lowercase form is longer (such as
    "İ", which lowercases to "i" plus a combining dot) is left as is, so
    the query "i" does not match it.
    """
    low = text.lower()
    if len(low) == len(text):
        return low
    out = []
    for ch in text:
        lc = ch.lower()
        out.append(lc if len(lc) == 1 else ch)
    return "".join(out)


def find_occurrences(haystack: str, word: str) -> List[int]:
    """Start offsets of every non-overlapping literal occurrence of word."""
    if not word:
        return []
    hits = []
    i = haystack.find(word)
    while i != -1:
        hits.append(i)
        i = haystack.find(word, i + len(word))
    return hits


def merge_anchors(offsets: List[int], proximity: int) -> List[int]:
    """
    Collapse runs of nearby offsets into the first offset of each run.
    Consecutive offsets at most `proximity` characters apart belong to
    the same run.
    """
    anchors: List[int] = []
    prev = None
    for off in sorted(set(offsets)):
        if prev is None or off - prev > proximity:
            anchors.append(off)
        prev = off
    return anchors


def highlight_pattern(terms: List[str]) -> re.Pattern | None:
    uniq = sorted({t for t in terms if t}, key=len, reverse=True)
    if not uniq:
        return None
    return re.compile("(" + "|".join(re.escape(t) for t in uniq) + ")", re.IGNORECASE)


def highlight_html_snippet(snippet_html: str, terms: List[str]) -> str:
    pattern = highlight_pattern(terms)
    if pattern is None:
        return snippet_html
    parts = _markup_re.split(snippet_html)
    # odd indices are the captured tags/entities
    for i in range(0, len(parts), 2):
        if parts[i]:
            parts[i] = pattern.sub(lambda m: f"<mark>{m.group(0)}</mark>", parts[i])
    return "".join(parts)
