from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from .auth import get_store
from .exceptions import CorruptDataError
from .store import SqlStore, seed_if_absent
from .routers import auth as auth_router
from .routers import dashboard as dashboard_router
from .routers import financials as financials_router
from .routers import patients as patients_router
from .routers import sessions as sessions_router

# --- Basic logging ---
logging.basicConfig(level=logging.INFO)
log = logging.getLogger("practice-app")

app = FastAPI(title="Practice Dashboard")

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})

# --- Exception Handlers ---

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(exc.status_code, str(exc.detail))

@app.exception_handler(StarletteHTTPException)
async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
    # 404 for unknown routes, 405, etc.
    return error_response(exc.status_code, str(exc.detail))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # 422: required field missing or malformed
    log.warning("Validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={"detail": "Invalid input. Please check the form fields.", "errors": jsonable_errors(exc)},
    )

@app.exception_handler(CorruptDataError)
async def corrupt_data_handler(request: Request, exc: CorruptDataError):
    # fatal for that collection; nothing is repaired automatically
    log.error("Corrupt collection %r: %s", exc.key, exc.reason)
    return error_response(500, f"Stored data for '{exc.key}' is unreadable.")

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    # Catch-all so stack traces never reach the client
    log.exception("Unhandled error: %s", exc)
    return error_response(500, "An unexpected server error occurred.")

def jsonable_errors(exc: RequestValidationError):
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]

# --- Startup: create table & seed demo data ---
@app.on_event("startup")
def on_startup():
    store = app.dependency_overrides.get(get_store, get_store)()
    if isinstance(store, SqlStore):
        store.create_tables()
    seed_if_absent(store)

# --- Routers ---
app.include_router(auth_router.router)
app.include_router(dashboard_router.router)
app.include_router(patients_router.router)
app.include_router(sessions_router.router)
app.include_router(financials_router.router)
