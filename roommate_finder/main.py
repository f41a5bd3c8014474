"""
FastAPI application entry point.

Sets up the app, lifespan (DB connect/disconnect), CORS, logging, error
handlers and the API routers. Settings are built once and passed in; the store
client is created by `client_factory` so tests can swap in an in-memory one.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from motor.motor_asyncio import AsyncIOMotorClient

from roommate_finder.api import users
from roommate_finder.config import Settings, get_settings
from roommate_finder.database import ClientFactory, close_mongo_connection, connect_to_mongo
from roommate_finder.exceptions import InternalError, RoommateFinderError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Single place for log format and level."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: connect to MongoDB at start and disconnect at end.
    """
    settings: Settings = app.state.settings
    client = await connect_to_mongo(settings, app.state.client_factory)
    app.state.mongo_client = client
    yield
    await close_mongo_connection(client)


async def handle_app_error(request: Request, exc: RoommateFinderError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Invalid request body"},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    # Detail stays in the server log only
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_application(
    settings: Optional[Settings] = None,
    client_factory: ClientFactory = AsyncIOMotorClient,
) -> FastAPI:
    """Factory for the FastAPI app. Keeps main.py clean and testable."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Register, edit a roommate profile and search for roommates.",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.client_factory = client_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RoommateFinderError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(users.router, prefix="/api/users", tags=["users"])

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def home() -> str:
        return "Roommate Finder API is running..."

    return app


app = create_application()
