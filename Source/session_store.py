"""
Session persistence for Groupify
Stores the whole session snapshot as a single JSON document
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from config import SESSION_FILE
from data_models import SessionState

logger = logging.getLogger(__name__)


class SessionStore:
    """Write-through JSON store; every save replaces the whole file"""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or SESSION_FILE)

    def save(self, state: SessionState):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(asdict(state), f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)
        logger.debug("Saved session to %s", self.path)

    def load(self) -> Optional[SessionState]:
        """Return the stored snapshot, or None when nothing usable is stored"""
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return SessionState.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error("Failed to load session from %s: %s", self.path, e)
            return None

    def clear(self):
        if self.path.exists():
            self.path.unlink()
            logger.debug("Removed session file %s", self.path)
