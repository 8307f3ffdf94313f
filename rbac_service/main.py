from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from rbac_service import __version__
from rbac_service.core import config
from rbac_service.core.database.engine import DatabaseClient
from rbac_service.core.errors import ProjectError, ProjectErrorCode
from rbac_service.features.roles.routes import router as role_router
from rbac_service.features.roles.service import RoleService
from rbac_service.features.roles.store import build_role_store
from rbac_service.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="RBAC Role Service",
    description="Roles, permissions and role-permission assignment",
    version=__version__,
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
limiter = Limiter(key_func=get_remote_address, default_limits=[config.RATE_LIMIT])
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.rbac_service.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# HTTP status for each error the service raises on purpose; everything else is a 500
ERROR_STATUS_CODES = {
    ProjectErrorCode.ROLE_NOT_FOUND: 404,
    ProjectErrorCode.INVALID_PERMISSION: 400,
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        if key == "__root__":
            key = "root"
        errors[str(key)] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"error": "Invalid input", "code": ProjectErrorCode.INVALID_INPUT.value, "data": errors}),
    )


@app.exception_handler(ProjectError)
async def project_error_handler(_request: Request, exc: ProjectError):
    status_code = ERROR_STATUS_CODES.get(exc.error_code)
    if status_code is None:
        log.error("Unhandled %r", exc)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    content = {"error": exc.message, "code": exc.error_code.value}
    if exc.error_data is not None:
        content["data"] = exc.error_data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.on_event("startup")
async def startup():
    """Initialize the database, the selected role store and the service."""
    database_url = (
        config.DATABASE_URL
        if config.DATABASE_TYPE == config.DATABASE_TYPE_POSTGRES
        else config.SQLITE_DATABASE_URL
    )
    log.info("Initializing %s database...", config.DATABASE_TYPE)
    database = DatabaseClient(database_url, echo=config.DB_LOGGING)
    await database.initialize(
        config.DATABASE_TYPE,
        create_tables=config.AUTO_CREATE_TABLES,
        fill_demo_data=config.AUTO_FILL_DATA,
    )
    app.state.database = database
    app.state.role_service = RoleService(build_role_store(config.DATABASE_TYPE, database))
    log.info("Database initialized successfully")


@app.on_event("shutdown")
async def shutdown():
    database = getattr(app.state, "database", None)
    if database is not None:
        await database.dispose()


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "RBAC Role Service API",
        "version": __version__,
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "database": config.DATABASE_TYPE,
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Role and permission routes
app.include_router(role_router, prefix="/auth", tags=["roles"])
