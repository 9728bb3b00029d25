# catalog/main.py
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import APIRouter, Body, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

from .config import Settings, setup_logging
from .core import ProductIn, Upload, UserIn
from .database import DocumentStore
from .errors import BadRequest, setup_exception_handlers
from .media import MAX_IMAGES, URL_PREFIX, MediaSink
from .models import Category, Product, User
from .service import CatalogService

logger = logging.getLogger(__name__)
router = APIRouter()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        store = DocumentStore(settings.db_file)
        media = MediaSink(settings.uploads_dir)
        media.ensure_directory()
        await store.open()
        app.state.service = CatalogService(store, media)
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(title="catalog-store", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(app)
    app.include_router(router)
    # directory is created in lifespan, before the first request
    app.mount(URL_PREFIX, StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")
    return app


# ---------------------------
# Dependencies
# ---------------------------
def get_service(request: Request) -> CatalogService:
    return request.app.state.service


async def product_form(
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    categoryId: Optional[str] = Form(None),
    categoryName: Optional[str] = Form(None),
) -> ProductIn:
    try:
        return ProductIn(
            name=name,
            price=price,
            description=description,
            categoryId=categoryId,
            categoryName=categoryName,
        )
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        raise BadRequest(f"{field}: {first['msg']}")


async def image_uploads(images: Optional[List[UploadFile]] = File(None)) -> List[Upload]:
    # browsers send an empty part when no file is picked
    files = [f for f in (images or []) if f.filename]
    if len(files) > MAX_IMAGES:
        raise BadRequest(f"At most {MAX_IMAGES} images per request")
    return [Upload(f.filename, await f.read()) for f in files]


# ---------------------------
# Routes
# ---------------------------
@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/products", response_model=List[Product])
async def list_products(service: CatalogService = Depends(get_service)):
    return await service.list_products()


@router.get("/products/{product_id}", response_model=Product)
async def get_product(product_id: int, service: CatalogService = Depends(get_service)):
    return await service.get_product(product_id)


@router.post("/products", response_model=Product, status_code=201)
async def create_product(
    fields: ProductIn = Depends(product_form),
    uploads: List[Upload] = Depends(image_uploads),
    service: CatalogService = Depends(get_service),
):
    return await service.create_product(fields, uploads)


@router.put("/products/{product_id}", response_model=Product)
async def update_product(
    product_id: int,
    fields: ProductIn = Depends(product_form),
    uploads: List[Upload] = Depends(image_uploads),
    service: CatalogService = Depends(get_service),
):
    return await service.update_product(product_id, fields, uploads)


@router.delete("/products/{product_id}")
async def delete_product(product_id: int, service: CatalogService = Depends(get_service)):
    return {"success": await service.delete_product(product_id)}


@router.get("/categories", response_model=List[Category])
async def list_categories(service: CatalogService = Depends(get_service)):
    return await service.list_categories()


@router.post("/categories", response_model=Category, status_code=201)
async def create_category(
    payload: Dict[str, Any] = Body(...),
    service: CatalogService = Depends(get_service),
):
    return await service.create_category(payload)


@router.delete("/categories/{category_id}")
async def delete_category(category_id: int, service: CatalogService = Depends(get_service)):
    return {"success": await service.delete_category(category_id)}


@router.get("/users", response_model=List[User])
async def list_users(service: CatalogService = Depends(get_service)):
    return await service.list_users()


@router.post("/users", response_model=User, status_code=201)
async def record_login(payload: UserIn, service: CatalogService = Depends(get_service)):
    return await service.record_login(payload)


app = create_app()


def run():
    settings = app.state.settings
    setup_logging(settings)
    logger.info("serving catalog on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
