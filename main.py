import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, List, Optional

from bson import ObjectId
from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo import MongoClient
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import CatalogStore
from logging_config import setup_logging
from schemas import AvailabilityItem, AvailabilityResult, Message, OrderCreated, OrderIn
from settings import Settings

log = logging.getLogger(__name__)


# ---------- Helpers ----------

def _to_json_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _to_json_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_json_value(v) for v in value]
    return value


def doc_to_dict(doc: dict) -> dict:
    """Render a stored document as JSON-safe data, keeping ``_id`` as the key."""
    return {k: _to_json_value(v) for k, v in doc.items()}


def get_store(request: Request) -> CatalogStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# ---------- Application ----------

def create_app(settings: Optional[Settings] = None, client: Optional[MongoClient] = None) -> FastAPI:
    """Build the service.

    ``client`` lets callers supply an already constructed Mongo client; when
    omitted one is created from ``settings.database_url`` at startup and
    closed at shutdown.  Startup blocks until the database answers, so no
    request is served against an unconnected handle.
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        mongo = client
        if mongo is None:
            mongo = MongoClient(settings.database_url, serverSelectionTimeoutMS=settings.db_timeout_ms)
        store = CatalogStore(mongo, settings.database_name)
        try:
            store.connect()
        except PyMongoError:
            log.critical("MongoDB connection failed", exc_info=True)
            if client is None:
                mongo.close()
            raise
        app.state.store = store
        try:
            yield
        finally:
            if client is None:
                mongo.close()

    app = FastAPI(title="Catalog Order API", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.cors_open else settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )

    register_error_handlers(app)
    register_routes(app)
    return app


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        log.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "An error occurred"})


def register_routes(app: FastAPI) -> None:

    # ---------- Basic Routes ----------

    @app.get("/")
    def read_root():
        return {"message": "Catalog service running"}

    @app.get("/health")
    def health(store: CatalogStore = Depends(get_store)):
        try:
            store.ping()
        except PyMongoError as e:
            log.error("Health check failed: %s", e)
            raise HTTPException(status_code=503, detail="Database unavailable")
        return {"status": "ok", "database": "connected"}

    # ---------- Product Routes ----------

    @app.get("/collections/products", response_model=List[dict])
    @app.get("/collections/courses", response_model=List[dict])
    @app.get("/collections/products/search", response_model=List[dict])
    def list_products(
        search: str = "",
        sortKey: str = "title",
        sortOrder: str = "asc",
        store: CatalogStore = Depends(get_store),
    ):
        log.info("Product query: search=%r sortKey=%r sortOrder=%r", search, sortKey, sortOrder)
        try:
            docs = store.find_products(search, sortKey, descending=sortOrder != "asc")
        except PyMongoError as e:
            log.error("Error fetching products: %s", e)
            raise HTTPException(status_code=500, detail="Failed to fetch products")
        return [doc_to_dict(d) for d in docs]

    @app.delete("/collections/products/title/{title}", response_model=Message)
    def delete_product(title: str, store: CatalogStore = Depends(get_store)):
        log.info("Request to delete product with title: %s", title)
        try:
            deleted = store.delete_product_by_title(title)
        except PyMongoError as e:
            log.error("Error deleting product by title: %s", e)
            raise HTTPException(status_code=500, detail="Failed to delete product")
        if not deleted:
            raise HTTPException(status_code=404, detail="Product not found")
        return Message(message="Product deleted successfully")

    @app.put("/collections/products/update-availability", response_model=AvailabilityResult)
    def update_availability(payload: Any = Body(None), store: CatalogStore = Depends(get_store)):
        products = payload.get("products") if isinstance(payload, dict) else None
        if not isinstance(products, list):
            raise HTTPException(status_code=400, detail="Invalid or missing products data")

        # Whole batch is checked before the first write
        try:
            items = [AvailabilityItem.model_validate(p) for p in products]
        except ValidationError:
            raise HTTPException(status_code=400, detail="Each product must have a title and quantity")

        try:
            matched, unmatched = store.decrement_availability(items)
        except PyMongoError as e:
            log.error("Error updating product availability: %s", e)
            raise HTTPException(status_code=500, detail="Failed to update product availability")
        return AvailabilityResult(
            message="Product availability updated successfully",
            matched=matched,
            unmatched=unmatched,
        )

    # ---------- Order Routes ----------

    @app.post("/collections/orders", status_code=201, response_model=OrderCreated)
    def create_order(
        payload: Any = Body(None),
        store: CatalogStore = Depends(get_store),
        settings: Settings = Depends(get_settings),
    ):
        try:
            order = OrderIn.model_validate(payload)
        except ValidationError:
            raise HTTPException(status_code=400, detail="Invalid or missing fields in the request body")
        if settings.require_order_id and not order.orderId:
            raise HTTPException(status_code=400, detail="Invalid or missing fields in the request body")

        try:
            new_id = store.create_order(order.model_dump(exclude_none=True))
        except PyMongoError as e:
            log.error("Error creating order: %s", e)
            raise HTTPException(status_code=500, detail="Failed to create order")
        log.info("Order %s created", new_id)
        return OrderCreated(message="Order created successfully", orderId=new_id)


# Built on demand; `uvicorn main:create_app --factory` works too
if __name__ == "__main__":
    import uvicorn
    app = create_app()
    uvicorn.run(app, host=app.state.settings.host, port=app.state.settings.port)
