from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from portray.core import config
from portray.core.database.engine import init_db
from portray.core.database.seed import seed_reference_data
from portray.core.limiter import limiter
from portray.features.users.routes import auth_router, router as user_router
from portray.features.roles.routes import router as role_router
from portray.features.permissions.routes import router as permission_router
from portray.features.organizations.routes import router as organization_router
from portray.features.ports.routes import (
    router as port_router,
    terminal_router,
    subscription_router,
)
from portray.features.customers.routes import router as customer_router, contract_router
from portray.features.menus.routes import router as menu_router
from portray.features.audit.routes import router as audit_router
from portray.features.notifications.routes import router as notification_router
from portray.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="PortRay API",
    description="Port and terminal administration with role-based section permissions",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.portray.features."), timing=timing, tags=tags))


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
        if not error.get("loc") or "msg" not in error:
            continue
        key = error["loc"][-1]
        if key == "__root__":
            key = "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.on_event("startup")
async def startup():
    """Create tables and reference data on application startup."""
    log.info("Initializing database...")
    await init_db()
    await seed_reference_data()
    log.info("Database initialized successfully")


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "PortRay API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": {
            "info": "Protected endpoints require Bearer token in Authorization header",
            "public_endpoints": ["/", "/health", "/auth/login"]
        },
        "permissions": {
            "format": "section[:subsection]:levels",
            "levels": ["read", "write", "manage"],
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(user_router, prefix="/users", tags=["users"])
app.include_router(role_router, prefix="/roles", tags=["roles"])

# Permission inspection
app.include_router(permission_router, prefix="/permissions", tags=["permissions"])

# Organizations, ports and terminals
app.include_router(organization_router, prefix="/organizations", tags=["organizations"])
app.include_router(port_router, prefix="/ports", tags=["ports"])
app.include_router(terminal_router, prefix="/terminals", tags=["terminals"])
app.include_router(subscription_router, prefix="/subscription-types", tags=["terminals"])

# Customers and contracts
app.include_router(customer_router, prefix="/customers", tags=["customers"])
app.include_router(contract_router, prefix="/contracts", tags=["contracts"])

# Configuration
app.include_router(menu_router, prefix="/menus", tags=["menus"])
app.include_router(audit_router, prefix="/audit-logs", tags=["audit-logs"])
app.include_router(notification_router, prefix="/notifications", tags=["notifications"])
