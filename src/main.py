from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.middleware.base import BaseHTTPMiddleware

from src.billing.infrastructure.scheduler import BillingScheduler
from src.config import get_settings
from src.dependencies import extract_bearer_token, get_redis_client, get_session_factory, get_tracing_service
from src.monitoring.api.middleware import DistributedTracingMiddleware, QueryCountMiddleware
from src.monitoring.infrastructure.query_monitor import QueryMonitor
from src.shared import security
from src.shared.exceptions import UnauthorizedError, register_exception_handlers
from src.shared.logging import get_logger, setup_logging
from src.shared.middleware import CorrelationIdMiddleware
from src.shared.model_loader import import_all_models
from src.tenancy.api.middleware import AddTenantHeaderMiddleware

from src.billing.api.routes.billing_routes import router as billing_router
from src.console.api.routes.impersonation_routes import router as impersonation_router
from src.console.api.routes.tenant_management_routes import router as tenant_management_router
from src.marketplace.api.routes.agent_routes import router as agent_router
from src.marketplace.api.routes.tenant_agent_routes import router as tenant_agent_router
from src.monitoring.api.routes.health_routes import router as health_router
from src.monitoring.api.routes.trace_routes import router as trace_router
from src.tenancy.api.routes.organization_routes import router as organization_router
from src.tenancy.api.routes.role_routes import router as role_router
from src.tenancy.api.routes.tenant_routes import router as tenant_router

settings = get_settings()
logger = get_logger(__name__)


class JwtContextMiddleware(BaseHTTPMiddleware):
    """
    Parses Bearer JWT and attaches claims to request.state.user_claims.
    An invalid token leaves the request anonymous; protected routes answer 401.
    """

    async def dispatch(self, request: Request, call_next):
        token = extract_bearer_token(request)
        request.state.user_claims = None
        if token:
            try:
                claims = security.decode_token(token)
            except UnauthorizedError as exc:
                logger.debug("Rejected bearer token", reason=exc.message)
            else:
                request.state.user_claims = {
                    "sub": claims.get("sub"),
                    "tenant_id": claims.get("tenant_id"),
                    "role": claims.get("role"),
                    "is_system_admin": bool(claims.get("is_system_admin", False)),
                    "permissions": claims.get("permissions") or [],
                }

        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    import_all_models()
    redis = get_redis_client()
    await redis.connect()
    factory = get_session_factory()

    monitor: Optional[QueryMonitor] = None
    if settings.query_monitoring_enabled:
        monitor = QueryMonitor.from_settings(settings, redis)
        monitor.attach(factory.engine)

    scheduler: Optional[BillingScheduler] = None
    if settings.BILLING_SCHEDULER_ENABLED:
        scheduler = BillingScheduler(factory, settings)
        scheduler.start()

    logger.info(
        "Application started",
        env=settings.ENVIRONMENT,
        version=settings.PROJECT_VERSION,
        cache="memory" if redis.is_fake else "redis",
    )
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()
        if monitor is not None:
            monitor.detach(factory.engine)
        await redis.close()
        await factory.dispose()
        logger.info("Application stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{settings.PROJECT_NAME} API",
        version=settings.PROJECT_VERSION,
        swagger_ui_parameters={"persistAuthorization": True},
        lifespan=lifespan,
    )

    # Innermost first: the tenant header sees request.state set by routes,
    # tracing sees the claims parsed by JwtContextMiddleware.
    app.add_middleware(AddTenantHeaderMiddleware)
    app.add_middleware(
        QueryCountMiddleware,
        max_queries=settings.DB_MAX_QUERIES_PER_REQUEST,
        log_totals=settings.DB_LOG_QUERY_TOTALS,
    )
    app.add_middleware(DistributedTracingMiddleware, tracing=get_tracing_service())
    app.add_middleware(JwtContextMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
        expose_headers=["X-Correlation-ID", "X-Trace-ID", "X-Span-ID", "X-Tenant-Id"],
    )

    # Routers
    app.include_router(health_router)
    app.include_router(tenant_router)
    app.include_router(organization_router)
    app.include_router(role_router)
    app.include_router(billing_router)
    app.include_router(agent_router)
    app.include_router(tenant_agent_router)
    app.include_router(tenant_management_router)
    app.include_router(impersonation_router)
    app.include_router(trace_router)

    # every error renders as {code, message, details?, correlation_id?}
    register_exception_handlers(app)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint."""
        return {
            "message": f"{settings.PROJECT_NAME} API",
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    # ---- Custom OpenAPI to add Bearer auth ----
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            routes=app.routes,
        )
        schema.setdefault("components", {}).setdefault("securitySchemes", {})["bearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
        schema["security"] = [{"bearerAuth": []}]
        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi

    return app


app = create_app()
