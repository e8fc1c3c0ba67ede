"""Configuration for the qabook API server."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class Settings:
    """
    Server settings.

    Defaults resolve relative to the project root.
    Every field is overridable at construction for testing.
    """
    content_path: Optional[Path] = None
    search_top_k: int = 5
    log_level: str = "INFO"
    cors_origins: tuple = ("http://localhost:3000",)

    def __post_init__(self):
        project_root = Path(__file__).resolve().parent.parent

        if self.content_path is None:
            env_path = os.environ.get("QABOOK_CONTENT_PATH")
            self.content_path = Path(env_path) if env_path else project_root / "content" / "notes.txt"
        self.content_path = Path(self.content_path)

        env_top_k = os.environ.get("QABOOK_SEARCH_TOP_K")
        if env_top_k is not None:
            try:
                self.search_top_k = max(1, int(env_top_k))
            except ValueError:
                pass

        if os.environ.get("QABOOK_LOG_LEVEL"):
            self.log_level = os.environ["QABOOK_LOG_LEVEL"].upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            self.log_level = "INFO"
