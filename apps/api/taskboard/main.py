from __future__ import annotations

from time import monotonic

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.trustedhost import TrustedHostMiddleware

from taskboard.assistant.errors import AssistantError
from taskboard.config import settings
from taskboard.db import init_db
from taskboard.errors import TaskBoardError
from taskboard.logging_config import get_logger, setup_logging
from taskboard.metrics import runtime_metrics
from taskboard.routers.activity import router as activity_router
from taskboard.routers.assistant import router as assistant_router
from taskboard.routers.system import router as system_router
from taskboard.routers.tasks import router as tasks_router
from taskboard.routers.users import router as users_router
from taskboard.seed import seed

logger = get_logger(__name__)

app = FastAPI(
  title="Task Board API",
  version=settings.app_version,
  docs_url="/docs" if settings.api_docs_enabled else None,
  redoc_url="/redoc" if settings.api_docs_enabled else None,
  openapi_url="/openapi.json" if settings.api_docs_enabled else None,
)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None, **extra) -> JSONResponse:
  return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra}, headers=headers)


@app.exception_handler(TaskBoardError)
async def _task_board_error_handler(request: Request, exc: TaskBoardError) -> JSONResponse:
  logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
  return _error(exc.status_code, exc.message)


@app.exception_handler(AssistantError)
async def _assistant_error_handler(request: Request, exc: AssistantError) -> JSONResponse:
  logger.warning("Assistant request failed (%s): %s", exc.__class__.__name__, exc.message)
  return _error(exc.status_code, exc.message, reply=f"Error: {exc.message}")


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(_, exc: StarletteHTTPException) -> JSONResponse:
  message = exc.detail if isinstance(exc.detail, str) else "Request failed"
  return _error(exc.status_code, message, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(_, exc: RequestValidationError) -> JSONResponse:
  errors = exc.errors()
  if not errors:
    return _error(400, "Invalid request")
  first = errors[0]
  loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
  msg = str(first.get("msg", "Invalid request"))
  return _error(400, f"{loc}: {msg}" if loc else msg)


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
  logger.exception("Unhandled error on %s %s", request.method, request.url.path)
  return _error(500, str(exc) if settings.expose_errors() else "Internal server error")


app.add_middleware(
  CORSMiddleware,
  allow_origins=settings.cors_origin_list(),
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_host_list())

app.include_router(tasks_router)
app.include_router(users_router)
app.include_router(assistant_router)
app.include_router(activity_router)
app.include_router(system_router)


@app.middleware("http")
async def _request_metrics_middleware(request: Request, call_next):
  start = monotonic()
  response = await call_next(request)
  elapsed_ms = (monotonic() - start) * 1000.0
  route = request.scope.get("route")
  runtime_metrics.observe_request(
    f"{request.method} {getattr(route, 'path', request.url.path)}",
    response.status_code,
    elapsed_ms,
  )
  response.headers.setdefault("X-Content-Type-Options", "nosniff")
  response.headers.setdefault("X-Frame-Options", "DENY")
  response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
  return response


@app.on_event("startup")
async def _startup() -> None:
  setup_logging()
  await init_db()
  if settings.seed_demo_users:
    await seed()
  logger.info("Task board API %s started (%s)", settings.app_version, settings.environment)
