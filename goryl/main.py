from contextlib import asynccontextmanager
from fastapi import FastAPI
from sqlmodel import SQLModel
from goryl.api.routers import public_routers,admin_routers
from goryl.common.custom_exceptions import register_all_exceptions
from goryl.common.logging_setup import get_logger, setup_logging, shutdown_logging
from goryl.db.connection import async_engine,async_session,make_session_maker
from goryl.db.seed import seed_defaults
from goryl.middlewares.auth_middleware import AuthenticationMiddleware
from goryl.middlewares.request_id_middleware import RequestIdMiddleware
from goryl.api.__init__ import version_prefix,cur_version
from goryl.config.admin_config import admin_config
from goryl.config.settings import config_settings
from metrics.custom_instrumentator import instrumentator
import goryl.schema.full_schema  # noqa: F401  registers the tables on SQLModel.metadata

logger = get_logger("goryl.app")

# served without a token
OPEN_PATHS = [f"{version_prefix}/auth/", f"{version_prefix}/health", "/metrics", "/docs", "/openapi.json"]
# anonymous unless an Authorization header is sent
MAYBE_AUTH_PATHS = [f"{version_prefix}/categories", f"{version_prefix}/products", f"{version_prefix}/profiles",
                    f"{version_prefix}/kyc/tiers", f"{version_prefix}/kyc/cnic/validate",
                    f"{version_prefix}/kyc/artisan/steps/", f"{version_prefix}/kyc/business/steps/"]


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    setup_logging()
    engine = app.state.engine

    if config_settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
    await seed_defaults(app.state.session_maker)
    logger.info("app.startup", extra={"env": admin_config.ENV})

    try:
        yield
    finally:
        # new requests are no longer accepted at this point
        await engine.dispose()
        logger.info("app.shutdown")
        shutdown_logging()


def create_app(engine=None):
    app=FastAPI(
        title="Goryl",
        version=cur_version,
        lifespan=app_lifespan)

    app.state.engine = engine or async_engine
    app.state.session_maker = make_session_maker(engine) if engine is not None else async_session

    app.include_router(public_routers)

    if admin_config.ENABLE_ADMIN:
        app.include_router(admin_routers)      # mounts /api/v1/admin

    app.add_middleware(AuthenticationMiddleware,session_maker=app.state.session_maker,paths=OPEN_PATHS,
                       maybe_auth_paths=MAYBE_AUTH_PATHS)
    app.add_middleware(RequestIdMiddleware)
    register_all_exceptions(app)

    if admin_config.ENABLE_METRICS:
        instrumentator.instrument(app).expose(app, endpoint="/metrics")

    return app

app=create_app()
