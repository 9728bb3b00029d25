# catalog/models.py
from pydantic import BaseModel, ConfigDict
from typing import Any, List, Optional


class Product(BaseModel):
    # categoryName is a snapshot taken at write time; renaming the category
    # does not update it
    model_config = ConfigDict(extra="allow")

    id: int
    name: Optional[str] = None
    price: Optional[float] = None
    description: Optional[str] = None
    categoryId: Optional[int] = None
    categoryName: Optional[str] = None
    images: List[str] = []


class Category(BaseModel):
    model_config = ConfigDict(extra="allow")

    # new rows always get an int; older documents may hold whatever id the
    # client sent
    id: Any = None


class User(BaseModel):
    email: str
    username: str
    loginTime: str
