from contextlib import asynccontextmanager
from typing import Optional, Tuple
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from tortoise import Tortoise
from scimcore.config import Settings, settings as default_settings
from scimcore.middleware import ErrorHandlerMiddleware, RequestLoggingMiddleware, error_response
from scimcore.api.v2.router import router as v2_router
from scimcore.repositories import InMemoryRepository, TortoiseRepository
from scimcore.schemas import Group, ResourceType, User
from scimcore.services import GroupProvider, UserProvider
from scimcore.utils import logger


def build_providers(config: Settings) -> Tuple[UserProvider, GroupProvider]:
    if config.repository_backend == "tortoise":
        user_repository = TortoiseRepository(ResourceType.USER, User)
        group_repository = TortoiseRepository(ResourceType.GROUP, Group)
    else:
        user_repository = InMemoryRepository(ResourceType.USER)
        group_repository = InMemoryRepository(ResourceType.GROUP)

    logger.debug(f"Using the {config.repository_backend} repository backend")
    return (
        UserProvider(user_repository, timeout=config.repository_timeout, api_prefix=config.api_prefix),
        GroupProvider(group_repository, timeout=config.repository_timeout, api_prefix=config.api_prefix),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: Settings = app.state.settings
    logger.info(f"Starting {config.app_name}...")

    if config.repository_backend == "tortoise":
        await Tortoise.init(config=config.tortoise_orm_config)
        await Tortoise.generate_schemas()
        logger.info("Database connection established")

    yield

    logger.info(f"Shutting down {config.app_name}...")
    if config.repository_backend == "tortoise":
        await Tortoise.close_connections()
        logger.info("Database connections closed")


def create_app(
    config: Optional[Settings] = None,
    user_provider: Optional[UserProvider] = None,
    group_provider: Optional[GroupProvider] = None,
) -> FastAPI:
    config = config or default_settings

    app = FastAPI(
        title=config.app_name,
        description="SCIM 2.0 provisioning service",
        version="1.0.0",
        docs_url="/docs" if config.debug else None,
        redoc_url="/redoc" if config.debug else None,
        openapi_url="/openapi.json" if config.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = config

    default_users, default_groups = build_providers(config)
    app.state.user_provider = user_provider or default_users
    app.state.group_provider = group_provider or default_groups

    app.add_middleware(ErrorHandlerMiddleware)
    if config.debug:
        app.add_middleware(RequestLoggingMiddleware)

    app.include_router(v2_router, prefix=config.api_prefix)

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "environment": config.environment,
            "backend": config.repository_backend,
            "version": "1.0.0"
        }

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc):
        return error_response(404, f"Path {request.url.path} not found")

    @app.exception_handler(405)
    async def method_not_allowed_handler(request: Request, exc):
        return error_response(405, f"Method {request.method} not allowed for path {request.url.path}")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            f"Validation error for {request.method} {request.url.path}\n"
            f"Errors: {exc.errors()}"
        )

        detail = "Invalid request"
        # In debug mode, include validation details
        if config.debug:
            detail = f"""Validation error: {'; '.join([f'{err["loc"]}: {err["msg"]}' for err in exc.errors()])}"""

        return error_response(400, detail, "invalidValue")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "scimcore.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.reload,
        log_level=default_settings.log_level.lower(),
    )
