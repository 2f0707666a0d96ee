"""contact_scout.state: Ограниченное множество просмотренных ID и JSON-хранилище состояния."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Sequence, Union

from contact_scout.logger import logger

__all__: Sequence[str] = ("SeenIdSet", "JsonStateStore", "default_state", "NESTED_STATE_KEYS")

NESTED_STATE_KEYS: tuple[str, ...] = ("stats", "extractedData")


class SeenIdSet:
    """
    Множество ID с сохранением порядка вставки.

    Когда размер превышает ``max_size``, самые старые записи вытесняются,
    пока не останется ``trim_to``.
    """

    def __init__(self, ids: Iterable[str] = (), max_size: int = 1000, trim_to: int = 500) -> None:
        if trim_to >= max_size:
            raise ValueError("trim_to must be smaller than max_size")
        self.max_size = max_size
        self.trim_to = trim_to
        self._ids: Dict[str, None] = {}
        self.update(ids)

    def __contains__(self, item: object) -> bool:
        return item in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def add(self, item_id: str) -> None:
        self._ids.setdefault(str(item_id), None)
        self._trim()

    def update(self, ids: Iterable[str]) -> None:
        for item_id in ids:
            self._ids.setdefault(str(item_id), None)
        self._trim()

    def to_list(self) -> List[str]:
        return list(self._ids)

    def _trim(self) -> None:
        if len(self._ids) <= self.max_size:
            return
        drop = len(self._ids) - self.trim_to
        logger.info("Обрезка множества ID: %d -> %d", len(self._ids), self.trim_to)
        for key in list(self._ids)[:drop]:
            del self._ids[key]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def default_state() -> Dict[str, Any]:
    """Состояние по умолчанию для пустого или повреждённого файла."""
    now = _now()
    return {
        "scrapedProducts": [],
        "stats": {
            "totalProductsFound": 0,
            "totalProductsScraped": 0,
            "totalEmailsFound": 0,
            "totalTwitterHandlesFound": 0,
            "lastRunDuration": 0,
            "startTime": now,
            "lastActiveTime": now,
        },
        "extractedData": {
            "emails": [],
            "twitterHandles": [],
            "links": [],
            "lastUpdated": now,
        },
        "lastChecked": now,
        "newProductsCount": 0,
        "isEnabled": False,
        "webhookUrl": "",
        "seenProductIds": [],
    }


class JsonStateStore:
    """Файловое хранилище состояния: верхние ключи заменяются, вложенные stats/extractedData сливаются."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def get(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return default_state()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("Ошибка чтения состояния %s: %s", self.path, exc)
            return default_state()
        if not isinstance(data, dict):
            logger.error("Состояние %s не является объектом", self.path)
            return default_state()
        state = default_state()
        state.update(data)
        return state

    def set(self, partial: Mapping[str, Any]) -> bool:
        current = self.get()
        merged = {**current, **partial}
        for key in NESTED_STATE_KEYS:
            merged[key] = {**(current.get(key) or {}), **(partial.get(key) or {})}
        try:
            self._write(merged)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Ошибка записи состояния %s: %s", self.path, exc)
            return False
        return True

    def _write(self, state: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state, fh, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
