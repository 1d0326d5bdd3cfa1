import logging
import os
import time

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from .config import get_settings
from .errors import IndexBuildError
from .indexer import build_index, write_index
from .models import IndexStats, index_adapter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s"
)


def _entry_count(path: str) -> int:
    try:
        with open(path, "rb") as f:
            return len(index_adapter.validate_json(f.read()))
    except (OSError, ValueError):
        return 0


def create_app() -> FastAPI:
    """
    Preview server for a built site. It serves files and the search index
    artifact; searching itself happens in the page.
    """
    settings = get_settings()
    app = FastAPI(title="docsearch", version="0.1.0")

    @app.get("/health")
    def health(): return {"ok": True}

    @app.get("/stats", response_model=IndexStats)
    def stats():
        path = settings.index_path
        return IndexStats(entries=_entry_count(path), index_path=path, built=os.path.exists(path))

    @app.post("/reindex", response_model=IndexStats)
    def reindex():
        t0 = time.time()
        try:
            entries = build_index(
                settings.content_dir, settings.base_route, settings.extensions)
            write_index(entries, settings.index_path)
        except IndexBuildError as e:
            logging.exception("/reindex failed: %s", e)
            raise HTTPException(status_code=500, detail=str(e))
        dt = (time.time() - t0) * 1000
        logging.info(
            f"reindexed entries={len(entries)} path={settings.index_path} latency_ms={dt:.1f}")
        return IndexStats(entries=len(entries), index_path=settings.index_path, built=True)

    @app.get(settings.index_url)
    def search_index():
        if not os.path.isfile(settings.index_path):
            raise HTTPException(
                status_code=404, detail="Search index not built; run docsearch-build or POST /reindex")
        return FileResponse(settings.index_path, media_type="application/json")

    if os.path.isdir(settings.site_dir):
        app.mount("/", StaticFiles(directory=settings.site_dir, html=True), name="site")
    return app


app = create_app()
