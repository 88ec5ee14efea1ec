"""
JSON:API Endpoints

Serves the registered resources under API_PREFIX using the JSON:API
conventions: list, create, read, update and delete per resource type.
"""

from typing import Optional
import logging
import os

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from sqlalchemy.orm import Session

from jsonapi_adapter.database import engine, get_db
from jsonapi_adapter.errors import JSONAPIResponse, JsonApiException, ResourceNotFound
from jsonapi_adapter.exception_handler import ExceptionHandler
from jsonapi_adapter.middleware import JsonApiMiddleware
from jsonapi_adapter.models import Base
from jsonapi_adapter.parameters import EncodingParameters
from jsonapi_adapter.resources import RESOURCES
from jsonapi_adapter.schema import ResourceDocument

logger = logging.getLogger(__name__)

API_PREFIX = os.getenv("API_PREFIX", "/api/v1")
API_NAME = os.getenv("API_NAME", "v1")


def _resource(resource_type: str, db: Session):
    if resource_type not in RESOURCES:
        raise ResourceNotFound(detail=f"Resource type {resource_type} does not exist.")
    adapter_class, schema = RESOURCES[resource_type]
    return adapter_class(db), schema


def get_params(request: Request) -> EncodingParameters:
    return EncodingParameters.from_request(request)


# ============================================================================
# Resource Endpoints
# ============================================================================

router = APIRouter(tags=["JSON:API"])


@router.get("/{resource_type}")
async def list_resources(
    resource_type: str,
    params: EncodingParameters = Depends(get_params),
    db: Session = Depends(get_db),
):
    """List resources of a type"""
    adapter, schema = _resource(resource_type, db)
    return JSONAPIResponse(content=schema.document(adapter.query(params), params))


@router.post("/{resource_type}", status_code=201)
async def create_resource(
    resource_type: str,
    document: ResourceDocument,
    params: EncodingParameters = Depends(get_params),
    db: Session = Depends(get_db),
):
    """Create a resource from a JSON:API document"""
    adapter, schema = _resource(resource_type, db)
    record = adapter.create(document, params)
    content = schema.document(record, params)
    return JSONAPIResponse(
        status_code=201,
        content=content,
        headers={"Location": content["data"]["links"]["self"]},
    )


@router.get("/{resource_type}/{resource_id}")
async def read_resource(
    resource_type: str,
    resource_id: str,
    params: EncodingParameters = Depends(get_params),
    db: Session = Depends(get_db),
):
    """Read a single resource"""
    adapter, schema = _resource(resource_type, db)
    return JSONAPIResponse(content=schema.document(adapter.read(resource_id, params), params))


@router.patch("/{resource_type}/{resource_id}")
async def update_resource(
    resource_type: str,
    resource_id: str,
    document: ResourceDocument,
    params: EncodingParameters = Depends(get_params),
    db: Session = Depends(get_db),
):
    """
    Update a resource

    For soft-deleting resources, writing the soft-delete attribute trashes
    (true, 1, "1" or a date) or restores (false, 0, "0" or null) the record.
    """
    adapter, schema = _resource(resource_type, db)
    record = adapter.update(adapter.read(resource_id, params), document, params)
    return JSONAPIResponse(content=schema.document(record, params))


@router.delete("/{resource_type}/{resource_id}", status_code=204)
async def delete_resource(
    resource_type: str,
    resource_id: str,
    params: EncodingParameters = Depends(get_params),
    db: Session = Depends(get_db),
):
    """Delete a resource"""
    adapter, _ = _resource(resource_type, db)
    if not adapter.delete(adapter.read(resource_id, params), params):
        raise JsonApiException(status_code=500, detail=f"Unable to delete {resource_type} {resource_id}.")
    return Response(status_code=204)


# ============================================================================
# Application
# ============================================================================


def create_app(exception_handler: Optional[ExceptionHandler] = None) -> FastAPI:
    """
    Build the application

    The exception handler defaults to the framework rendering; pass a handler
    that mixes in HandlesErrors to render JSON:API error documents.
    """
    app = FastAPI(
        title="JSON:API Adapter",
        description="JSON:API resources backed by SQLAlchemy models, with soft delete support",
        version="1.0.0",
    )

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "jsonapi-adapter"}

    app.include_router(router, prefix=API_PREFIX)
    app.add_middleware(JsonApiMiddleware, prefix=API_PREFIX, api_name=API_NAME)
    (exception_handler or ExceptionHandler()).register(app)
    return app


app = create_app()

# Create tables
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
except Exception as e:
    logger.error(f"Failed to create database tables: {e}")
    raise


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
