# Load .env file BEFORE other imports (so env vars are available)
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.middleware import request_id_middleware, access_log_middleware
from src.logging_utils import log_event
from src.errors import ApiError, ValidationFailedError, InvalidCredentialsError, DuplicateEmailError, UserNotFoundError, problem
from src.error_codes import HTTP_ERROR, INTERNAL_ERROR, VALIDATION_ERROR

from src.schemas import (
    SignupRequest, LoginRequest, PreferencesUpdateRequest,
    MessageResponse, LoginResponse, PreferencesResponse, NewsResponse,
)
from src.config import validate_startup_config
from src.db import db_conn
from src.repo import create_user, get_user_by_email, update_user_preferences, update_user_last_login
from src.auth import hash_password, verify_password, create_access_token, require_user_email
from src.news import get_news_for_user


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Refuse to start without a signing secret (unless the dev opt-in is set)
    validate_startup_config()
    yield


app = FastAPI(lifespan=lifespan)

#Register middleware (last registered runs first)
app.middleware("http")(access_log_middleware)
app.middleware("http")(request_id_middleware)


def _error_response(request: Request, status: int, *, error: str, message: str, code: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    payload = problem(error=error, message=message, code=code, request_id=rid)
    resp = JSONResponse(status_code=status, content=payload.model_dump(exclude_none=True))
    if rid:
        resp.headers["X-Request-ID"] = rid
    return resp


@app.get("/health")
def health(request: Request):
    request_id = request.state.request_id
    log_event("health_check", request_id=request_id)
    return {"status": "ok"}


# --- Users ---

@app.post("/users/signup", status_code=201, response_model=MessageResponse)
def signup(body: SignupRequest):
    """Register a new user. Duplicate emails (case-insensitive) are rejected."""
    with db_conn() as conn:
        if get_user_by_email(conn, email=body.email) is not None:
            raise DuplicateEmailError()

        user_id = create_user(
            conn,
            name=body.name,
            email=body.email,
            password_hash=hash_password(body.password),
            preferences=body.preferences if isinstance(body.preferences, list) else [],
        )

    log_event("user_registered", user_id=user_id, email=body.email)
    return {"message": "User created successfully"}


@app.post("/users/login", response_model=LoginResponse)
def login(body: LoginRequest):
    """
    Exchange email + password for a bearer token.

    Unknown email and wrong password get the same 401 so the response
    doesn't reveal which accounts exist.
    """
    with db_conn() as conn:
        user = get_user_by_email(conn, email=body.email)
        if not user:
            raise InvalidCredentialsError()

        if not verify_password(body.password, user["password_hash"]):
            raise InvalidCredentialsError()

        update_user_last_login(conn, user_id=user["user_id"])

    token = create_access_token(user["email"])
    log_event("user_logged_in", user_id=user["user_id"], email=user["email"])
    return {"message": "Login successful", "token": token}


@app.get("/users/preferences", response_model=PreferencesResponse)
def get_preferences(email: str = Depends(require_user_email)):
    with db_conn() as conn:
        user = get_user_by_email(conn, email=email)

    if user is None:
        raise UserNotFoundError()

    return {"message": "Preferences retrieved successfully", "preferences": user["preferences"] or []}


@app.put("/users/preferences", response_model=PreferencesResponse)
def put_preferences(body: PreferencesUpdateRequest, email: str = Depends(require_user_email)):
    """
    Replace the stored preferences.

    Cached feeds are not invalidated; they expire on their own TTL.
    """
    preferences = body.preferences
    if not isinstance(preferences, list):
        raise ValidationFailedError("preferences must be an array")
    if not all(isinstance(p, str) for p in preferences):
        raise ValidationFailedError("preferences must be an array of strings")

    with db_conn() as conn:
        user = get_user_by_email(conn, email=email)
        if user is None:
            raise UserNotFoundError()

        update_user_preferences(conn, user_id=user["user_id"], preferences=preferences)

    log_event("preferences_updated", user_id=user["user_id"], email=email, preferences=preferences)
    return {"message": "Preferences updated successfully", "preferences": preferences}


# --- News ---

@app.get("/news", response_model=NewsResponse)
def get_news(email: str = Depends(require_user_email)):
    """
    Preference-filtered feed, cached per (user, preference set).

    An upstream failure still returns 200 with an empty list.
    """
    with db_conn() as conn:
        feed = get_news_for_user(conn, email)

    return {"news": feed.articles}


# --- Exception handlers ---

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    rid = getattr(request.state, "request_id", None)
    log_event("http_error", level="warning", request_id=rid, status=exc.status, code=exc.code, message=exc.message)
    return _error_response(request, exc.status, error=exc.error, message=exc.message, code=exc.code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    rid = getattr(request.state, "request_id", None)
    log_event("http_error", level="warning", request_id=rid, status=exc.status_code, message=str(exc.detail))
    return _error_response(request, exc.status_code, error=str(exc.detail), message=str(exc.detail), code=HTTP_ERROR)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed request fields are a 400, not FastAPI's default 422."""
    rid = getattr(request.state, "request_id", None)

    # Extract first error for a clean message
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(x) for x in first.get("loc", []))  #e.g., "body.email"
        msg = first.get("msg", "Validation error")
        message = f"{loc}: {msg}"
    else:
        message = "Validation error"

    log_event("validation_error", level="warning", request_id=rid, message=message)
    return _error_response(request, 400, error=ValidationFailedError.error, message=message, code=VALIDATION_ERROR)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = getattr(request.state, "request_id", None)
    # Don't leak details to the client, but do log them
    log_event("internal_error", level="error", request_id=rid, path=request.url.path,
              error_type=type(exc).__name__, error=str(exc))
    return _error_response(
        request,
        500,
        error=ApiError.error,
        message=ApiError.message,
        code=INTERNAL_ERROR,
    )
