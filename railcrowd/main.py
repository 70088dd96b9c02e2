import datetime as dt
import logging
import pathlib
from contextlib import asynccontextmanager
from typing import Any, List, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from railcrowd.config import settings
from railcrowd.database import CONNECTED, CONNECTING, DISCONNECTED, DISCONNECTING, Database, db, get_database
from railcrowd.errors import RecordNotFound, StoreError, ValidationError
from railcrowd.models import ApiDescription, DeleteResponse, ErrorResponse, Event, HealthResponse, Plan
from railcrowd.store import EVENT, PLAN, RecordKind, RecordStore, ensure_indexes, format_timestamp

# ===== Logging =====
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)

PUBLIC_DIR = pathlib.Path(__file__).resolve().parent / "public"
KNOWN_STATES = (DISCONNECTED, CONNECTED, CONNECTING, DISCONNECTING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await db.connect()
    if db.is_connected:
        await ensure_indexes(db)
    yield
    db.close()


# ===== App =====
app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=PUBLIC_DIR), name="static")


def get_store(database: Database = Depends(get_database)) -> RecordStore:
    return RecordStore(database)


# ===== Errors =====
def error_response(status_code: int, error: str, details: Optional[List[str]] = None, message: Optional[str] = None):
    body = ErrorResponse(error=error, details=details, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def debug_message(exc: Exception) -> Optional[str]:
    return str(exc) if settings.is_development else None


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (404, 405):
        return error_response(404, "Route not found")
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return error_response(400, "Validation failed", details=details)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error", message=debug_message(exc))


# ===== Shared handlers =====
async def list_records(store: RecordStore, kind: RecordKind, failure: str):
    try:
        return await store.list_all(kind)
    except StoreError as e:
        return error_response(500, failure, message=debug_message(e))


async def create_record(store: RecordStore, kind: RecordKind, payload: Any, failure: str):
    try:
        record = await store.create(kind, payload)
    except ValidationError as e:
        logger.info("Rejected %s: %s", kind.name.lower(), "; ".join(e.details))
        return error_response(400, "Validation failed", details=e.details)
    except StoreError as e:
        return error_response(500, failure, message=debug_message(e))
    return JSONResponse(status_code=201, content=record)


async def delete_record(store: RecordStore, kind: RecordKind, record_id: str, failure: str):
    try:
        await store.delete_by_id(kind, record_id)
    except RecordNotFound:
        return error_response(404, f"{kind.name} not found")
    except StoreError as e:
        return error_response(500, failure, message=debug_message(e))
    return DeleteResponse(message=f"{kind.name} deleted successfully", id=record_id)


ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# ===== Endpoints =====
@app.get("/api/health", response_model=HealthResponse)
async def health(database: Database = Depends(get_database)):
    state = database.state if database.state in KNOWN_STATES else "unknown"
    return HealthResponse(
        status="ok",
        timestamp=format_timestamp(dt.datetime.now(dt.timezone.utc)),
        database=state,
        mongodb_connected=state == CONNECTED,
    )


@app.get("/api/events", response_model=List[Event], response_model_exclude_none=True, responses=ERRORS)
async def list_events(store: RecordStore = Depends(get_store)):
    return await list_records(store, EVENT, "Failed to fetch events")


@app.post("/api/events", status_code=201, response_model=Event, responses=ERRORS)
async def add_event(payload: Any = Body(None), store: RecordStore = Depends(get_store)):
    return await create_record(store, EVENT, payload, "Failed to create event")


@app.delete("/api/events/{record_id}", response_model=DeleteResponse, responses=ERRORS)
async def delete_event(record_id: str, store: RecordStore = Depends(get_store)):
    return await delete_record(store, EVENT, record_id, "Failed to delete event")


@app.get("/api/planning", response_model=List[Plan], response_model_exclude_none=True, responses=ERRORS)
async def list_planning(store: RecordStore = Depends(get_store)):
    return await list_records(store, PLAN, "Failed to fetch planning")


@app.post("/api/planning", status_code=201, response_model=Plan, responses=ERRORS)
async def add_plan(payload: Any = Body(None), store: RecordStore = Depends(get_store)):
    return await create_record(store, PLAN, payload, "Failed to create plan")


@app.delete("/api/planning/{record_id}", response_model=DeleteResponse, responses=ERRORS)
async def delete_plan(record_id: str, store: RecordStore = Depends(get_store)):
    return await delete_record(store, PLAN, record_id, "Failed to delete plan")


@app.get("/", response_model=ApiDescription)
async def root():
    return ApiDescription(
        message=settings.APP_NAME,
        version=settings.APP_VERSION,
        endpoints={
            "health": "/api/health",
            "dashboard": "/dashboard",
            "events": {
                "GET": "/api/events",
                "POST": "/api/events",
                "DELETE": "/api/events/:id",
            },
            "planning": {
                "GET": "/api/planning",
                "POST": "/api/planning",
                "DELETE": "/api/planning/:id",
            },
        },
    )


@app.get("/dashboard", include_in_schema=False)
async def dashboard():
    return FileResponse(PUBLIC_DIR / "index.html")
