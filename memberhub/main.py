import uvicorn
from fastapi import FastAPI

from memberhub.api.routes.admin_users import router as admin_users_router
from memberhub.api.routes.auth import router as auth_router
from memberhub.api.routes.health import router as health_router
from memberhub.api.routes.internal_inactivity import router as internal_inactivity_router
from memberhub.api.routes.me import router as me_router
from memberhub.core.config import get_settings
from memberhub.core.logging import configure_logging

ROUTERS = (
    health_router,
    auth_router,
    me_router,
    admin_users_router,
    internal_inactivity_router,
)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.app_env != "dev")

    docs_enabled = settings.enable_openapi_docs
    app = FastAPI(
        title="Memberhub API",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    for router in ROUTERS:
        app.include_router(router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "memberhub.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
