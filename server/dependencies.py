"""FastAPI dependency factories."""

import threading
from functools import lru_cache

from fastapi import Depends

from qabook.store import ContentStore
from server.config import Settings

# Process-wide store cache (keyed by settings identity for override support)
_store: ContentStore | None = None
_store_settings_id: object | None = None
_store_lock = threading.Lock()


@lru_cache()
def get_settings() -> Settings:
    """Singleton Settings -- override via app.dependency_overrides in tests."""
    return Settings()


def get_content_store(settings: Settings = Depends(get_settings)) -> ContentStore:
    """Process-wide ContentStore; the document itself loads lazily on first use."""
    global _store, _store_settings_id
    with _store_lock:
        # Recreate if settings were overridden (e.g. in tests)
        if _store is None or _store_settings_id is not settings:
            _store = ContentStore(settings.content_path)
            _store_settings_id = settings
        return _store


def reset_content_store() -> None:
    global _store, _store_settings_id
    with _store_lock:
        _store = None
        _store_settings_id = None
