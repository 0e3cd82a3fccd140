from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from rolegate.core import config
from rolegate.core.database.engine import AsyncSessionLocal, init_db
from rolegate.core.errors import (
    DuplicateValueError,
    InvalidPermissionForProfileError,
    NoRoleInProfileError,
    NotFoundError,
    OrganizationInUseError,
    RoleInUseError,
    RolegateError,
    UserHasRolesError,
)
from rolegate.core.limiter import limiter
from rolegate.features.audit.routes import router as audit_router
from rolegate.features.catalog.routes import router as catalog_router
from rolegate.features.evaluator.routes import router as evaluator_router
from rolegate.features.memberships.entities import User
from rolegate.features.memberships.repository import save_user
from rolegate.features.memberships.routes import router as user_router
from rolegate.features.profiles.routes import router as profile_router
from rolegate.features.roles.routes import organization_router, router as role_router
from rolegate.state import load_core
from rolegate.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="rolegate",
    description="Profile-aware, organization-scoped permission decisions",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.rolegate.features."), timing=timing, tags=tags))


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


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        if key == "__root__":
            key = "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


ERROR_STATUS = {
    NotFoundError: 404,
    InvalidPermissionForProfileError: 422,
    DuplicateValueError: 409,
    RoleInUseError: 409,
    OrganizationInUseError: 409,
    UserHasRolesError: 409,
    NoRoleInProfileError: 403,
}


@app.exception_handler(RolegateError)
async def rolegate_exception_handler(_request: Request, exc: RolegateError):
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)), 400
    )
    log.info("%s: %s", type(exc).__name__, exc.detail)
    return JSONResponse(status_code=status_code, content={"detail": exc.detail})


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.on_event("startup")
async def startup():
    """Create tables and load the authorization core."""
    log.info("Initializing database...")
    await init_db()
    async with AsyncSessionLocal() as db:
        core = await load_core(db, seed_default=config.SEED_DEFAULT_CATALOG)
        if config.BOOTSTRAP_ADMIN_ID:
            try:
                core.memberships.user(config.BOOTSTRAP_ADMIN_ID)
            except NotFoundError:
                admin = core.memberships.add_user(
                    User(id=config.BOOTSTRAP_ADMIN_ID, name="admin", is_admin=True)
                )
                await save_user(db, admin)
                await db.commit()
                log.warning("Created bootstrap admin user %s", admin.id)
    app.state.core = core
    log.info("Authorization core loaded")


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "rolegate API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": {
            "info": f"Protected endpoints require the {config.USER_ID_HEADER} header",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(catalog_router, prefix="/catalog", tags=["catalog"])
app.include_router(organization_router, prefix="/organizations", tags=["organizations"])
app.include_router(role_router, prefix="/roles", tags=["roles"])
app.include_router(user_router, prefix="/users", tags=["users"])

# Acting-user routes: profile state and permission checks
app.include_router(profile_router, prefix="/me", tags=["profiles"])
app.include_router(evaluator_router, prefix="/me", tags=["permissions"])

app.include_router(audit_router, prefix="/audit-logs", tags=["audit"])
