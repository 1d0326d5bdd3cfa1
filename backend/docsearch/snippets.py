"""
Snippet extraction: a window of lines around a match offset, rendered as a
small HTML fragment with the query words marked.

The window is cleaned with BeautifulSoup and then run through a regex tag
balancer. The balancer is a heuristic rather than an HTML parser, but every
fragment it returns has its non-void elements closed.
"""
import re
import warnings
from typing import List, Optional

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from .config import Settings, get_settings
from .utils import highlight_html_snippet

_TAG = r"<(/?)([A-Za-z][A-Za-z0-9-]*)(?=[\s/>])[^<>]*?(/?)>"
_tag_re = re.compile(_TAG)
_stray_lt_re = re.compile(r"<(?!/?[A-Za-z][A-Za-z0-9-]*(?=[\s/>])[^<>]*>)")
_comment_re = re.compile(r"<!--.*?-->", re.S)
_url_noise_re = re.compile(r"[\x00-\x20]+")

# void elements render as <br>, and text is escaped for &, < and > only
_fragment_formatter = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

VOID_TAGS = {
    "area", "base", "br", "code", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}
UNSAFE_TAGS = [
    "script", "style", "iframe", "frame", "frameset", "object", "embed",
    "form", "input", "button", "textarea", "select", "link", "meta", "base",
    "svg", "math", "template", "noscript",
]
HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
URL_ATTRS = {"href", "src", "srcset", "action", "formaction", "poster", "background", "xlink:href"}
UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")

# short snippets such as "setup.md" are markup here, not file names
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)


def locate_line(lines: List[str], offset: int) -> int:
    total = 0
    for i, line in enumerate(lines):
        total += len(line) + 1
        if total > offset:
            return i
    return max(0, len(lines) - 1)


def _word_count(lines: List[str]) -> int:
    return sum(len(line.split()) for line in lines)


def select_window(lines: List[str], line_no: int, above: int, below: int, target_words: int) -> tuple[int, int]:
    """
    Returns (start, end) line bounds, end exclusive. The window grows one
    line per side while it holds fewer than target_words words.
    """
    n = len(lines)
    start = max(0, line_no - above)
    end = min(n, line_no + below + 1)
    while _word_count(lines[start:end]) < target_words and (start > 0 or end < n):
        if start > 0:
            start -= 1
        if end < n:
            end += 1
    return start, end


def _unsafe_url(value) -> bool:
    if isinstance(value, list):
        value = " ".join(value)
    # browsers ignore whitespace and control characters inside the scheme
    return _url_noise_re.sub("", value).lower().startswith(UNSAFE_SCHEMES)


def sanitize(fragment: str) -> str:
    """
    Cleans a fragment for display: drops comments and unsafe elements,
    removes event handler attributes and script URLs, and demotes
    headings to <strong>. The result is re-serialized, so attribute
    syntax a browser might read differently never survives verbatim.
    """
    fragment = _comment_re.sub("", fragment)
    # a '<' that does not open a complete tag (e.g. cut at a line break) is text
    fragment = _stray_lt_re.sub("&lt;", fragment)
    soup = BeautifulSoup(fragment, "html.parser")
    for tag in soup(UNSAFE_TAGS):
        if not tag.decomposed:
            tag.decompose()
    for tag in soup.find_all(True):
        if tag.name in HEADING_TAGS:
            tag.name = "strong"
            tag.attrs = {}
            continue
        for name in list(tag.attrs):
            key = name.lower()
            if key.startswith("on") or (key in URL_ATTRS and _unsafe_url(tag.attrs[name])):
                del tag.attrs[name]
    return soup.decode(formatter=_fragment_formatter)


def balance_tags(fragment: str) -> str:
    stack: List[str] = []
    out: List[str] = []
    pos = 0
    for m in _tag_re.finditer(fragment):
        out.append(fragment[pos:m.start()])
        pos = m.end()
        closing, name, self_closing = m.group(1), m.group(2).lower(), m.group(3)
        if name in VOID_TAGS or self_closing:
            out.append(m.group(0))
            continue
        if closing:
            if name not in stack:
                continue  # close without an open in this fragment
            while stack:
                top = stack.pop()
                if top == name:
                    break
                out.append(f"</{top}>")
            out.append(m.group(0))
            continue
        stack.append(name)
        out.append(m.group(0))
    out.append(fragment[pos:])
    out.extend(f"</{name}>" for name in reversed(stack))
    return "".join(out)


def extract_snippet(text: str, offset: int, words: List[str], settings: Optional[Settings] = None) -> str:
    s = settings or get_settings()
    lines = text.split("\n")
    line_no = locate_line(lines, offset)
    start, end = select_window(
        lines, line_no, s.lines_above, s.lines_below, s.target_words)
    window = [line.rstrip("\r") for line in lines[start:end]]
    snippet = sanitize("<br>".join(window))
    snippet = highlight_html_snippet(snippet, words)
    return balance_tags(snippet)
