# catalog/core.py
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import BaseModel, Field, field_validator

from .media import MAX_IMAGES

# Input structs and pure record helpers shared by the service and the boundary.


class ProductIn(BaseModel):
    """Product form fields. Missing or blank fields become None."""

    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    description: Optional[str] = None
    categoryId: Optional[int] = None
    categoryName: Optional[str] = None

    @field_validator("price", "categoryId", mode="before")
    @classmethod
    def _blank_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class UserIn(BaseModel):
    email: str
    username: str


class Upload(NamedTuple):
    filename: str
    data: bytes


def _make_product_dict(product_id: int, p: ProductIn, images: List[str]) -> Dict[str, Any]:
    return {
        "id": product_id,
        "name": p.name,
        "price": p.price,
        "description": p.description,
        "categoryId": p.categoryId,
        "categoryName": p.categoryName,
        "images": images,
    }


def merge_images(existing: List[str], new: List[str]) -> List[str]:
    # append then keep the first MAX_IMAGES: older images win over newer ones
    if not new:
        return existing
    return (list(existing) + list(new))[:MAX_IMAGES]


def _make_login_dict(u: UserIn, when: Optional[datetime] = None) -> Dict[str, Any]:
    when = when or datetime.now(timezone.utc)
    stamp = when.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return {
        "email": u.email,
        "username": u.username,
        "loginTime": stamp.replace("+00:00", "Z"),
    }
