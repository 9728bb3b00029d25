# catalog/service.py
import logging
from typing import Any, Dict, List, Optional, Sequence

from .core import (
    ProductIn, UserIn, Upload, _make_product_dict, _make_login_dict, merge_images
)
from .database import DocumentStore
from .errors import BadRequest, NotFound
from .media import MAX_IMAGES, MediaSink

logger = logging.getLogger(__name__)


def _find(records: List[Dict[str, Any]], record_id: int) -> Optional[int]:
    for i, r in enumerate(records):
        if r.get("id") == record_id:
            return i
    return None


class CatalogService:
    """CRUD over products, categories and the login log.

    Each mutating method is exactly one ``store.transaction()``; list and get
    methods read the last saved snapshot without locking.
    """

    def __init__(self, store: DocumentStore, media: MediaSink):
        self.store = store
        self.media = media

    @staticmethod
    def _check_upload_count(uploads: Sequence[Upload]):
        if len(uploads) > MAX_IMAGES:
            raise BadRequest(f"At most {MAX_IMAGES} images per request")

    async def _store_uploads(self, uploads: Sequence[Upload]) -> List[str]:
        return [await self.media.store(u.filename, u.data) for u in uploads]

    # Products

    async def list_products(self) -> List[Dict[str, Any]]:
        return (await self.store.load())["products"]

    async def get_product(self, product_id: int) -> Dict[str, Any]:
        products = (await self.store.load())["products"]
        idx = _find(products, product_id)
        if idx is None:
            raise NotFound("Product not found")
        return products[idx]

    async def create_product(self, fields: ProductIn, uploads: Sequence[Upload] = ()) -> Dict[str, Any]:
        self._check_upload_count(uploads)
        async with self.store.transaction() as doc:
            images = await self._store_uploads(uploads)
            product = _make_product_dict(DocumentStore.next_id(doc["products"]), fields, images)
            doc["products"].append(product)
        logger.info("created product %s (%d images)", product["id"], len(images))
        return product

    async def update_product(self, product_id: int, fields: ProductIn,
                             uploads: Sequence[Upload] = ()) -> Dict[str, Any]:
        """Overwrite every scalar field; append new images up to the cap.

        Omitted fields are written as None rather than kept. Uploaded files
        are written under the writer lock, so updates apply in the order they
        were submitted; they land before the product lookup, so a NotFound
        still leaves them on disk.
        """
        self._check_upload_count(uploads)
        async with self.store.transaction() as doc:
            new_images = await self._store_uploads(uploads)
            products = doc["products"]
            idx = _find(products, product_id)
            if idx is None:
                raise NotFound("Product not found")
            current = products[idx]
            existing = current.get("images") or []
            images = merge_images(existing, new_images)
            updated = {**current, **_make_product_dict(product_id, fields, images)}
            products[idx] = updated
        if new_images and len(existing) + len(new_images) > MAX_IMAGES:
            logger.info("product %s: image cap reached, kept %d of %d new images",
                        product_id, len(images) - len(existing), len(new_images))
        logger.info("updated product %s", product_id)
        return updated

    async def delete_product(self, product_id: int) -> bool:
        async with self.store.transaction() as doc:
            before = len(doc["products"])
            doc["products"] = [p for p in doc["products"] if p.get("id") != product_id]
            removed = before - len(doc["products"])
        logger.info("deleted product %s (%d removed)", product_id, removed)
        return True

    # Categories

    async def list_categories(self) -> List[Dict[str, Any]]:
        return (await self.store.load())["categories"]

    async def create_category(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        async with self.store.transaction() as doc:
            category = {**fields, "id": DocumentStore.next_id(doc["categories"])}
            doc["categories"].append(category)
        logger.info("created category %s", category["id"])
        return category

    async def delete_category(self, category_id: int) -> bool:
        """Drop the category and every product filed under it."""
        async with self.store.transaction() as doc:
            doc["categories"] = [c for c in doc["categories"] if c.get("id") != category_id]
            before = len(doc["products"])
            doc["products"] = [p for p in doc["products"] if p.get("categoryId") != category_id]
            removed = before - len(doc["products"])
        logger.info("deleted category %s with %d products", category_id, removed)
        return True

    # Users

    async def list_users(self) -> List[Dict[str, Any]]:
        return (await self.store.load())["users"]

    async def record_login(self, user: UserIn) -> Dict[str, Any]:
        record = _make_login_dict(user)
        async with self.store.transaction() as doc:
            doc["users"].append(record)
        logger.info("recorded login for %s", user.email)
        return record
