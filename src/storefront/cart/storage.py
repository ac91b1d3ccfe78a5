"""Cart persistence.

The cart lives in a single key-value slot as a JSON list of line dicts.
Every mutation rewrites the whole list; the last writer wins.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

CART_SLOT = "cart"


class CartStorage(ABC):
    """Durable key-value slot for the cart."""

    @abstractmethod
    def load(self, key: str) -> list[dict] | None:
        """Return the stored value, or None if the slot is empty."""
        ...

    @abstractmethod
    def save(self, key: str, value: list[dict]) -> None: ...


class InMemoryCartStorage(CartStorage):
    def __init__(self) -> None:
        self.slots: dict[str, list[dict]] = {}

    def load(self, key: str) -> list[dict] | None:
        value = self.slots.get(key)
        return None if value is None else [dict(item) for item in value]

    def save(self, key: str, value: list[dict]) -> None:
        self.slots[key] = [dict(item) for item in value]


class JsonFileCartStorage(CartStorage):
    """Slots stored as one JSON object in a file, keyed by slot name.

    A missing or unreadable file behaves like an empty store.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            logger.warning("Cart storage unreadable, starting empty", path=str(self.path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            logger.warning("Cart storage has unexpected shape, starting empty", path=str(self.path))
            return {}
        return data

    def load(self, key: str) -> list[dict] | None:
        value = self._read_all().get(key)
        if value is not None and not isinstance(value, list):
            logger.warning("Cart slot is not a list, ignoring", key=key)
            return None
        return value

    def save(self, key: str, value: list[dict]) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(self.path)
