import logging
import os
import re
import sys
import tempfile
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

from .config import Settings, get_settings
from .errors import IndexBuildError
from .models import IndexEntry, index_adapter

_front_matter_re = re.compile(r"\A\ufeff?\s*---[ \t]*\r?\n(.*?)\r?\n---", re.S)
_title_line_re = re.compile(r"^title:[ \t]*(.+?)[ \t]*\r?$", re.M)
HTML_EXTENSIONS = (".html", ".htm")


def front_matter_title(text: str) -> Optional[str]:
    block = _front_matter_re.search(text)
    if not block:
        return None
    m = _title_line_re.search(block.group(1))
    if not m:
        return None
    title = m.group(1).strip()
    if len(title) >= 2 and title[0] == title[-1] and title[0] in "\"'":
        title = title[1:-1].strip()
    return title or None


def html_title(raw: str) -> str:
    soup = BeautifulSoup(raw, "lxml")
    return soup.title.string.strip() if soup.title and soup.title.string else ""


def extract_title(text: str, filename: str) -> str:
    """Front-matter title, then <title> for HTML sources, then the filename stem."""
    title = front_matter_title(text)
    if title is None and filename.lower().endswith(HTML_EXTENSIONS):
        title = html_title(text) or None
    return title or os.path.splitext(filename)[0]


def page_url(path: str, content_dir: str, base_route: str) -> str:
    rel = os.path.relpath(path, content_dir).replace(os.sep, "/")
    stem, _ = os.path.splitext(rel)
    return f"{base_route.rstrip('/')}/{stem}.html"


def _walk_error(err: OSError):
    raise IndexBuildError(f"cannot read directory {err.filename}: {err.strerror}") from err


def iter_documents(content_dir: str, extensions: Iterable[str]) -> Iterable[str]:
    exts = tuple(e.lower() for e in extensions)
    for root, dirs, files in os.walk(content_dir, onerror=_walk_error):
        dirs.sort()
        for fn in sorted(files):
            if fn.lower().endswith(exts):
                yield os.path.join(root, fn)


def read_document(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise IndexBuildError(f"cannot read {path}: {e}") from e


def build_index(content_dir: str, base_route: str = "/beamng", extensions: Iterable[str] = (".md",)) -> List[IndexEntry]:
    """
    Walks content_dir recursively and returns one IndexEntry per document,
    in sorted path order. Any unreadable file or directory aborts the build.
    """
    if not os.path.isdir(content_dir):
        raise IndexBuildError(f"content directory not found: {content_dir}")
    entries: List[IndexEntry] = []
    for path in iter_documents(content_dir, extensions):
        raw = read_document(path)
        entries.append(IndexEntry(
            title=extract_title(raw, os.path.basename(path)), content=raw, url=page_url(path, content_dir, base_route)))
    return entries


def _published_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_index(entries: List[IndexEntry], output_path: str) -> None:
    """Writes the entries as one JSON array, replacing output_path atomically."""
    out_dir = os.path.dirname(os.path.abspath(output_path))
    try:
        os.makedirs(out_dir, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".search-", suffix=".json", dir=out_dir)
    except OSError as e:
        raise IndexBuildError(f"cannot write {output_path}: {e}") from e
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(index_adapter.dump_json(entries, indent=2))
        # mkstemp creates the file 0600; publish it like any other site file
        os.chmod(tmp, _published_mode())
        os.replace(tmp, output_path)
    except OSError as e:
        try:
            os.remove(tmp)
        except FileNotFoundError:
            pass
        raise IndexBuildError(f"cannot write {output_path}: {e}") from e


def build(settings: Optional[Settings] = None) -> int:
    s = settings or get_settings()
    entries = build_index(s.content_dir, s.base_route, s.extensions)
    write_index(entries, s.index_path)
    print(f"Generated {s.index_path} with {len(entries)} entries.")
    return len(entries)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s"
    )
    try:
        build()
    except IndexBuildError as e:
        logging.error("index build failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
