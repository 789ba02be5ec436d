"""FastAPI application entrypoint for the button masher server."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from masher.api.errors import handle_http_exception
from masher.api.errors import handle_room_error
from masher.api.routers.rooms import router as rooms_router
from masher.core.config import load_settings
from masher.rooms.errors import RoomError
import masher.runtime as runtime
from masher.ws.routers import router as ws_router


@asynccontextmanager
async def lifespan(_: FastAPI):
    runtime.startup()
    yield
    await runtime.shutdown()


settings = load_settings()
app = FastAPI(lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_methods=["GET"],
    allow_headers=["*"],
)
app.add_exception_handler(StarletteHTTPException, handle_http_exception)
app.add_exception_handler(RoomError, handle_room_error)
app.include_router(rooms_router)
app.include_router(ws_router)


def main() -> None:
    """Console entry: serve the app with uvicorn on the configured address."""
    uvicorn.run(
        "masher.main:app",
        host=settings.masher_app_host,
        port=settings.masher_app_port,
        log_level=settings.masher_log_level.lower(),
    )


if __name__ == "__main__":
    main()


__all__ = [
    "app",
    "main",
    "settings",
]
