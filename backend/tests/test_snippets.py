import re

from bs4 import BeautifulSoup

from docsearch.config import Settings
from docsearch.snippets import VOID_TAGS, balance_tags, extract_snippet, locate_line, sanitize, select_window

TAG = re.compile(r"<(/?)([A-Za-z][A-Za-z0-9-]*)(?=[\s/>])[^<>]*?(/?)>")


def assert_balanced(fragment):
    stack = []
    for m in TAG.finditer(fragment):
        closing, name, self_closing = m.group(1), m.group(2).lower(), m.group(3)
        if name in VOID_TAGS or self_closing:
            continue
        if closing:
            assert stack and stack[-1] == name, fragment
            stack.pop()
        else:
            stack.append(name)
    assert stack == [], fragment


def test_balance_closes_open_tags_in_reverse():
    assert balance_tags("<b>bold <i>it") == "<b>bold <i>it</i></b>"


def test_balance_drops_stray_closes():
    assert balance_tags("x</b> y") == "x y"


def test_balance_void_tags_untouched():
    frag = "<br><hr><img src=a.png>text<br/>"
    assert balance_tags(frag) == frag
    assert balance_tags("<code>x") == "<code>x"


def test_balance_fixes_misnesting():
    assert balance_tags("<b><i>x</b>") == "<b><i>x</i></b>"


HTML_DOC = (
    "<h2>Install</h2>\n"
    "<p>Copy the <strong>mod\n"
    "files</strong> into <em>mods</em>.</p>\n"
    "<ul>\n<li>one\n<li>two</li>\n</ul>\n"
    "<div><span>deep\n</span></div>\n"
    "<a\nhref=\"/x\">cut link</a>"
)


def test_any_offset_gives_balanced_fragment():
    narrow = Settings(lines_above=0, lines_below=0, target_words=0)
    for offset in range(len(HTML_DOC) + 5):
        assert_balanced(extract_snippet(HTML_DOC, offset, ["mod"], narrow))
        assert_balanced(extract_snippet(HTML_DOC, offset, ["mod", "li"], Settings()))


def test_headings_demoted():
    s = Settings()
    assert extract_snippet("<h1>Title</h1>\nbody text", 0, [], s) == "<strong>Title</strong><br>body text"
    assert extract_snippet('<H3 id="x">Sub</H3>', 0, [], s) == "<strong>Sub</strong>"


def test_locate_line():
    lines = ["ab", "cd", "ef"]
    assert locate_line(lines, 0) == 0
    assert locate_line(lines, 2) == 0  # the newline belongs to its line
    assert locate_line(lines, 3) == 1
    assert locate_line(lines, 100) == 2


def test_window_grows_until_target_words():
    lines = [f"w{i}" for i in range(20)]
    assert select_window(lines, 10, 3, 3, 0) == (7, 14)
    assert select_window(lines, 10, 3, 3, 10) == (5, 16)
    assert select_window(lines, 1, 3, 3, 10) == (0, 10)
    assert select_window(lines, 0, 3, 3, 1000) == (0, 20)


def test_snippet_window_around_match():
    lines = [f"w{i}" for i in range(20)]
    text = "\n".join(lines)
    s = Settings(lines_above=3, lines_below=3, target_words=0)
    snippet = extract_snippet(text, 30, ["w10"], s)
    assert snippet == "w7<br>w8<br>w9<br><mark>w10</mark><br>w11<br>w12<br>w13"


def test_sanitize_neutralizes_scripts_and_handlers():
    out = extract_snippet("<script>alert(1)</script> hello", 0, [], Settings())
    assert "<script" not in out
    assert "alert" not in out
    assert "hello" in out
    assert sanitize('<a href="/x" onclick="evil()">x</a>') == '<a href="/x">x</a>'
    assert sanitize('see <a href="x"') == 'see &lt;a href="x"'


def handler_attrs(fragment):
    soup = BeautifulSoup(fragment, "html.parser")
    return [a for tag in soup.find_all(True) for a in tag.attrs if a.lower().startswith("on")]


def test_sanitize_handles_slash_separated_attributes():
    out = extract_snippet("<img/src=x/onerror=alert(1)> mod", 0, ["mod"], Settings())
    assert handler_attrs(out) == []
    assert "<mark>mod</mark>" in out
    assert sanitize("<img/src=x onerror=alert(1)>") == '<img src="x">'
    assert handler_attrs(sanitize("<svg/onload=alert(1)>x</svg><b/onclick=go()>y</b>")) == []


def test_sanitize_drops_encoded_script_urls():
    out = extract_snippet('<a href="java&#115;cript:alert(1)">mod</a>', 0, ["mod"], Settings())
    assert out == "<a><mark>mod</mark></a>"
    assert sanitize('<a href=" JaVa\tScRiPt:alert(1)">x</a>') == "<a>x</a>"
    assert sanitize('<img src="&#106;avascript:alert(1)">') == "<img>"
    assert sanitize('<a href="/beamng/faq.html">faq</a>') == '<a href="/beamng/faq.html">faq</a>'
