import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def default_path(user_id: str) -> Path:
    base = Path(os.getenv("PARTSCART_HOME", Path.home() / ".partscart"))
    return base / f"cart-{user_id}.json"


class LocalStorage:
    """Durable client-side mirror of the cart, one JSON document per file."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[dict]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cart storage %s: %s", self.path, e)
            return None
        return data if isinstance(data, dict) else None

    def save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # write-then-rename so a crash never leaves a truncated file
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".cart-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp, self.path)
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()

    @classmethod
    def for_user(cls, user_id: str) -> "LocalStorage":
        return cls(default_path(user_id))
