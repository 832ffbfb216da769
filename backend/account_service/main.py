# account_service/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from account_service.config import Settings, settings
from account_service.core.bootstrap import ensure_default_admin
from account_service.core.db import init_db, close_db
from account_service.core.error_handlers import register_error_handlers
from account_service.core.security import PasswordHasher, TokenService
from account_service.services.handler_factory import ResourceHandlers
from account_service.services.users import ADMIN_UPDATE_DENIED, build_user_collection

from account_service.api.v1.routers import auth, users as users_router

logger = logging.getLogger("uvicorn.error")


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Build the application.

    Settings are fixed here and shared by reference: the password hasher, the
    token service and the error handlers are all created from the same object.
    """
    app = FastAPI(title=app_settings.app_name)

    hasher = PasswordHasher(rounds=app_settings.bcrypt_rounds)
    users = build_user_collection(hasher)

    app.state.settings = app_settings
    app.state.hasher = hasher
    app.state.tokens = TokenService.from_settings(app_settings)
    app.state.users = users
    app.state.user_handlers = ResourceHandlers(users, deny_fields=ADMIN_UPDATE_DENIED)

    register_error_handlers(app, app_settings)

    # CORS (with Cookie); added last so error responses carry CORS headers too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def on_startup():
        logger.info("[startup] env=%s", app_settings.env)
        # Tables are created automatically outside production
        await init_db(app_settings.database_url, generate_schemas=not app_settings.is_production)
        # Ensure there's a default admin account on first run
        await ensure_default_admin(users)

    @app.on_event("shutdown")
    async def on_shutdown():
        await close_db()

    # REST
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(users_router.router, prefix="/api/v1")

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    return app


app = create_app()
