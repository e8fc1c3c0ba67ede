"""FastAPI application -- read-only routes over the study notes document."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware

from qabook.models import Document
from qabook.parser import FormatError
from qabook.render import FORMATS, MEDIA_TYPES
from qabook.store import ContentStore
from server.__version__ import __version__
from server.config import Settings
from server.dependencies import get_content_store, get_settings
from server.schemas import (
    ChapterResponse,
    DocumentResponse,
    SearchResponse,
)

logger = logging.getLogger("qabook")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan: configure logging only. The document loads lazily on first request."""
    settings = get_settings()
    logger.setLevel(settings.log_level)
    ts = datetime.utcnow().isoformat() + "Z"
    logger.info("[%s] Startup: content=%s", ts, settings.content_path)
    yield
    ts_end = datetime.utcnow().isoformat() + "Z"
    logger.info("[%s] Shutdown: complete", ts_end)


app = FastAPI(title="qabook", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(Settings().cors_origins),
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _load_document(store: ContentStore) -> Document:
    """Load the document or map load failures to HTTP 500."""
    try:
        return store.document()
    except FileNotFoundError:
        logger.error("Content file not found: %s", store.path)
        raise HTTPException(status_code=500, detail=f"Content file not found: {store.path}")
    except OSError as e:
        logger.error("Cannot read content file %s: %s", store.path, e)
        raise HTTPException(status_code=500, detail=f"Cannot read content file {store.path}: {e.strerror or e}")
    except FormatError as e:
        logger.error("Content file is malformed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


def _require_chapter(document: Document, number: int):
    try:
        return document.chapter(number)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Chapter not found: {number}")


# ---- Health (no dependencies, always fast) ----

@app.get("/health")
def health():
    """Minimal health check. Does not load the document."""
    return {"ok": True}


# ---- Document ----

@app.get("/document", response_model=DocumentResponse)
def get_document(store: ContentStore = Depends(get_content_store)):
    """Title plus one summary row per chapter."""
    doc = _load_document(store)
    return {
        "title": doc.title,
        "chapters": [
            {
                "number": ch.number,
                "title": ch.title,
                "question_count": len(ch.questions),
                "section_count": len(ch.sections),
            }
            for ch in doc.chapters
        ],
        "total_questions": doc.question_count(),
    }


@app.get("/chapters/{number}", response_model=ChapterResponse)
def get_chapter(number: int, store: ContentStore = Depends(get_content_store)):
    doc = _load_document(store)
    return _require_chapter(doc, number).to_dict()


# ---- Render ----

@app.get("/render")
def render_document(
    format: str = Query("html"),
    chapter: Optional[int] = Query(None),
    store: ContentStore = Depends(get_content_store),
):
    """Rendered document or chapter with the matching media type."""
    if format not in FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown format '{format}'. Expected one of: {', '.join(FORMATS)}",
        )
    doc = _load_document(store)
    if chapter is not None:
        _require_chapter(doc, chapter)
    body = store.render(format, chapter=chapter)
    return Response(content=body, media_type=MEDIA_TYPES[format])


# ---- Search ----

@app.get("/search", response_model=SearchResponse)
def search(
    q: str = Query(..., min_length=1, max_length=2000),
    top_k: Optional[int] = Query(None, ge=1, le=50),
    chapter: Optional[int] = Query(None),
    store: ContentStore = Depends(get_content_store),
    settings: Settings = Depends(get_settings),
):
    doc = _load_document(store)
    if chapter is not None:
        _require_chapter(doc, chapter)
    hits = store.search(q, top_k=top_k or settings.search_top_k, chapter=chapter)
    return {"query": q, "hits": [h.to_dict() for h in hits]}
