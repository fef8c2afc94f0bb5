from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional
import logging

import uvicorn
from fastapi import FastAPI, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import PasswordHasher, TokenService
from .config import Settings, get_settings
from .db import create_db_engine, create_session_factory, init_db
from .dependencies import get_auth_flow
from .errors import AccountServiceError
from .repository import AccountStore
from .routes import health, profile
from .schemas import AuthResponse, ErrorResponse, LoginRequest, RegisterRequest
from .service import AuthFlow, ProfileService
from .utils.event_logger import configure_logging, log_auth_event

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str) -> dict:
    return ErrorResponse(error=code, message=message).model_dump()


async def account_service_error_handler(request: Request, exc: AccountServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    message = "; ".join(problems) or "Invalid request body"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("validation_error", message),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = "not_found" if exc.status_code == status.HTTP_404_NOT_FOUND else "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application and its collaborators.

    The engine, the signing secret and the services are created once here and
    shared by every request through ``app.state``.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_DIR)

    engine = create_db_engine(settings.DATABASE_URL)
    store = AccountStore(
        create_session_factory(engine),
        default_membership_level=settings.DEFAULT_MEMBERSHIP_LEVEL,
    )
    hasher = PasswordHasher(rounds=settings.PASSWORD_HASH_ROUNDS)
    tokens = TokenService(
        settings.JWT_SECRET,
        ttl=timedelta(hours=settings.TOKEN_TTL_HOURS),
        algorithm=settings.JWT_ALGORITHM,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        """Create tables on startup and release pooled connections on shutdown"""
        init_db(engine)
        yield
        engine.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="A user management API with authentication and profiles",
        version=settings.VERSION,
        openapi_url="/api-docs/openapi.json",
        docs_url="/swagger-ui",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.auth_flow = AuthFlow(
        store,
        hasher,
        tokens,
        min_password_length=settings.MIN_PASSWORD_LENGTH,
        max_password_length=settings.MAX_PASSWORD_LENGTH,
    )
    app.state.profile_service = ProfileService(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AccountServiceError, account_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    @app.get("/")
    def index():
        return {
            "message": "User Management API is running!",
            "endpoints": {
                "register": "POST /auth/register",
                "login": "POST /auth/login",
                "get_profile": "GET /profile",
                "update_profile": "PUT /profile",
                "health": "GET /health",
                "api_docs": "GET /api-docs/openapi.json",
                "swagger_ui": "GET /swagger-ui",
            },
        }

    @app.post(
        "/auth/register",
        response_model=AuthResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["auth"],
        responses={
            400: {"model": ErrorResponse, "description": "Bad request"},
            409: {"model": ErrorResponse, "description": "Email already exists"},
        },
    )
    def register(payload: RegisterRequest, request: Request, flow: AuthFlow = Depends(get_auth_flow)):
        try:
            result = flow.register(payload.email, payload.password)
        except AccountServiceError as exc:
            log_auth_event("register_failure", None, payload.email, request, reason=exc.code)
            raise
        log_auth_event("register_success", result.account_id, result.email, request)
        return AuthResponse(token=result.token, user_id=result.account_id, email=result.email)

    @app.post(
        "/auth/login",
        response_model=AuthResponse,
        tags=["auth"],
        responses={
            400: {"model": ErrorResponse, "description": "Bad request"},
            401: {"model": ErrorResponse, "description": "Invalid credentials"},
        },
    )
    def login(payload: LoginRequest, request: Request, flow: AuthFlow = Depends(get_auth_flow)):
        try:
            result = flow.login(payload.email, payload.password)
        except AccountServiceError as exc:
            log_auth_event("login_failure", None, payload.email, request, reason=exc.code)
            raise
        log_auth_event("login_success", result.account_id, result.email, request)
        return AuthResponse(token=result.token, user_id=result.account_id, email=result.email)

    app.include_router(profile.router)
    app.include_router(health.router)

    return app


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    logger.info("Server starting on http://%s:%s", settings.HOST, settings.PORT)
    uvicorn.run(
        "account_platform.account_platform.account_service.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
    )
