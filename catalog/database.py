# catalog/database.py
import asyncio
import json
import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List

import aiofiles
import aiofiles.os

from .errors import StoreIOError

logger = logging.getLogger(__name__)

# Top-level collections every persisted document carries.
COLLECTIONS = ("products", "categories", "users")

Document = Dict[str, List[Dict[str, Any]]]


def empty_document() -> Document:
    return {name: [] for name in COLLECTIONS}


class DocumentStore:
    """Whole-file JSON persistence for the catalog document.

    Every change goes through ``transaction()``: load the entire document,
    mutate it in place, write the entire document back. A single
    ``asyncio.Lock`` spans that cycle so two writers never interleave their
    load and save phases. Reads via ``load()`` take no lock; ``save()``
    replaces the file atomically, so a reader sees either the previous or
    the next complete snapshot.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()
        self._open = False

    async def open(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreIOError(f"cannot create {self.path.parent}: {e}") from e
        self._open = True
        await self.load()
        logger.info("document store opened at %s", self.path)

    async def close(self):
        # wait for an in-flight writer before refusing new work
        async with self._lock:
            self._open = False
        logger.info("document store closed")

    def _check_open(self):
        if not self._open:
            raise StoreIOError(f"document store {self.path} is not open")

    async def load(self) -> Document:
        self._check_open()
        if not self.path.exists():
            logger.info("no document at %s, initializing", self.path)
            await self.save(empty_document())

        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except OSError as e:
            raise StoreIOError(f"cannot read {self.path}: {e}") from e

        try:
            document = json.loads(raw)
        except ValueError as e:
            raise StoreIOError(f"malformed document {self.path}: {e}") from e
        if not isinstance(document, dict):
            raise StoreIOError(f"malformed document {self.path}: top level is not an object")

        for name in COLLECTIONS:
            document.setdefault(name, [])
            if not isinstance(document[name], list):
                raise StoreIOError(f"malformed document {self.path}: {name!r} is not a list")
        return document

    async def save(self, document: Document):
        self._check_open()
        payload = json.dumps(document, indent=2, ensure_ascii=False)
        tmp_path = self.path.with_name(f".{self.path.name}.{os.getpid()}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreIOError(f"cannot write {self.path}: {e}") from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Document]:
        """Serialized load-mutate-save. Nothing is written if the body raises."""
        async with self._lock:
            document = await self.load()
            yield document
            await self.save(document)

    @staticmethod
    def next_id(records: List[Dict[str, Any]]) -> int:
        """Millisecond timestamp, bumped past the largest existing id.

        Only meaningful inside ``transaction()``, where the writer lock makes
        the max-then-append step atomic.
        """
        now = int(time.time() * 1000)
        ids = [r["id"] for r in records if isinstance(r.get("id"), int)]
        if ids and now <= max(ids):
            return max(ids) + 1
        return now
