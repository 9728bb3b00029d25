# catalog/media.py
import logging
import os
import random
import time
from pathlib import Path

import aiofiles

from .errors import StoreIOError

logger = logging.getLogger(__name__)

# Max files accepted per request; the catalog assumes it when merging images.
MAX_IMAGES = 5
URL_PREFIX = "/uploads"


class MediaSink:
    """Writes uploaded files into the content directory.

    Files are never deleted: replacing or deleting a product leaves its old
    files in place.
    """

    def __init__(self, uploads_dir: Path):
        self.uploads_dir = Path(uploads_dir)

    def ensure_directory(self):
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_name(original_name: str) -> str:
        # {ms timestamp}-{9 digit random}{ext}; collisions are not ruled out
        ext = os.path.splitext(os.path.basename(original_name or ""))[1]
        suffix = random.randint(0, 999_999_999)
        return f"{int(time.time() * 1000)}-{suffix:09d}{ext}"

    async def store(self, original_name: str, data: bytes) -> str:
        name = self.generate_name(original_name)
        target = self.uploads_dir / name
        try:
            async with aiofiles.open(target, "wb") as f:
                await f.write(data)
        except OSError as e:
            raise StoreIOError(f"cannot write upload {target}: {e}") from e
        logger.info("stored upload %r as %s (%d bytes)", original_name, name, len(data))
        return f"{URL_PREFIX}/{name}"

    def path_for(self, reference: str) -> Path:
        return self.uploads_dir / os.path.basename(reference)
