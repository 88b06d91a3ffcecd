import logging
from fastapi import FastAPI, Request, Response, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import auth, tasks
from .config import settings
from .db import get_db, init_db
from .logging_setup import setup_logging
from .models import Session
from .schemas import (
    ApiResponse,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TaskCompletionUpdate,
    TaskCreate,
    TaskListResponse,
    TaskOut,
    TaskResponse,
    UserOut,
)

setup_logging(settings.log_level, settings.log_file)
logger = logging.getLogger(__name__)

# Create tables on startup
init_db()

app = FastAPI(title="Task Manager")

SESSION_MAX_AGE = settings.session_days * 24 * 60 * 60


# ---------------------------------------------------------------------------
# Error envelopes
# ---------------------------------------------------------------------------

def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        {"success": False, "message": message},
        status_code=status_code,
        headers=headers,
    )


def _validation_message(errors) -> str:
    for error in errors:
        if tuple(error.get("loc", ()))[:2] == ("path", "task_id"):
            return "Invalid task ID"
    for error in errors:
        reason = (error.get("ctx") or {}).get("error")
        if reason is not None:
            return str(reason)
    if not errors:
        return "Invalid request"
    error = errors[0]
    if error.get("type") == "json_invalid":
        return "Request body must be valid JSON"
    loc = tuple(error.get("loc", ()))
    field = ".".join(str(part) for part in loc[1:])
    return f"Invalid {field}: {error['msg']}" if field else error["msg"]


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, _validation_message(exc.errors()))


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    # ServerErrorMiddleware re-raises after this, so the server logs the traceback
    return _error(500, "Internal server error")


# ---------------------------------------------------------------------------
# Session cookie
# ---------------------------------------------------------------------------

def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.cookie_name,
        token,
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        settings.cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def require_user_id(request: Request, db: DBSession = Depends(get_db)) -> int:
    token = request.cookies.get(settings.cookie_name)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")
    user_id = auth.resolve_session(db, token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return user_id


def _auth_response(message: str, session: Session) -> AuthResponse:
    return AuthResponse(
        success=True,
        message=message,
        user=UserOut.model_validate(session.user),
        token=session.token,
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

@app.get("/api/health", response_model=ApiResponse)
def health():
    return ApiResponse(success=True, message="ok")


@app.post("/api/auth/register", response_model=AuthResponse, response_model_exclude_none=True)
def register(payload: RegisterRequest, response: Response, db: DBSession = Depends(get_db)):
    if not payload.username or not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Username, email, and password are required")

    try:
        session = auth.register(db, payload.username, payload.email, payload.password)
    except auth.RegistrationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    _set_session_cookie(response, session.token)
    return _auth_response("User registered successfully", session)


@app.post("/api/auth/login", response_model=AuthResponse, response_model_exclude_none=True)
def login(payload: LoginRequest, response: Response, db: DBSession = Depends(get_db)):
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    session = auth.authenticate(db, payload.username, payload.password)
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid username or password")

    _set_session_cookie(response, session.token)
    return _auth_response("Login successful", session)


@app.post("/api/auth/logout", response_model=ApiResponse)
def logout(request: Request, response: Response, db: DBSession = Depends(get_db)):
    token = request.cookies.get(settings.cookie_name)
    if token:
        auth.revoke_session(db, token)
    _clear_session_cookie(response)
    return ApiResponse(success=True, message="Logged out successfully")


@app.get("/api/auth/me", response_model=AuthResponse, response_model_exclude_none=True)
def me(request: Request, db: DBSession = Depends(get_db)):
    token = request.cookies.get(settings.cookie_name)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user_id = auth.resolve_session(db, token)
    if user_id is None:
        response = _error(401, "Invalid or expired session")
        _clear_session_cookie(response)
        return response

    user = auth.get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return AuthResponse(success=True, message="User authenticated", user=UserOut.model_validate(user))


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@app.get("/api/tasks", response_model=TaskListResponse)
def list_tasks(user_id: int = Depends(require_user_id), db: DBSession = Depends(get_db)):
    return TaskListResponse(
        success=True,
        message="Tasks retrieved successfully",
        data=[TaskOut.model_validate(t) for t in tasks.list_tasks(db, user_id)],
    )


@app.post("/api/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    payload: TaskCreate,
    user_id: int = Depends(require_user_id),
    db: DBSession = Depends(get_db),
):
    task = tasks.create_task(db, user_id, payload.title, payload.description, payload.priority)
    logger.info("User %s created task %s", user_id, task.id)
    return TaskResponse(success=True, message="Task created successfully", data=TaskOut.model_validate(task))


@app.patch("/api/tasks/{task_id}/complete", response_model=ApiResponse)
def complete_task(
    task_id: int,
    payload: TaskCompletionUpdate,
    user_id: int = Depends(require_user_id),
    db: DBSession = Depends(get_db),
):
    if not tasks.set_task_completion(db, task_id, user_id, payload.completed):
        raise HTTPException(status_code=404, detail="Task not found")
    return ApiResponse(success=True, message="Task updated successfully")


@app.delete("/api/tasks/{task_id}", response_model=ApiResponse)
def delete_task(task_id: int, user_id: int = Depends(require_user_id), db: DBSession = Depends(get_db)):
    if not tasks.delete_task(db, task_id, user_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return ApiResponse(success=True, message="Task deleted successfully")
