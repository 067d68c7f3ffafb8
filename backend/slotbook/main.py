import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from .config import get_settings
from .database import create_tables
from .domain.errors import StoreUnavailableError
from .routers import bookings, devices, events
from .utils.request_id import REQUEST_ID_HEADER, resolve_request_id, set_request_id

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    if get_settings().auto_create_tables:
        await create_tables()
    yield


app = FastAPI(title="Slot Booking API", lifespan=lifespan)


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("store unavailable during %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "booking store is unavailable, please retry"},
    )


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.middleware("http")(request_id_middleware)
app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
app.add_exception_handler(OperationalError, store_unavailable_handler)
app.add_exception_handler(InterfaceError, store_unavailable_handler)

app.include_router(events.router)
app.include_router(devices.router)
app.include_router(bookings.router)
