# app/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.auth import AuthSessions
from app.config import Settings, settings as default_settings
from app.models.base import validation_details
from app.routers import auth, comments, daos, health, tasks, users
from app.services.email_service import EmailService
from app.services.store import DocumentStore, MemoryStore
from app.services.users_service import seed_users
from Core.errors import DaoError, StorageError

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "auth", "description": "Connexion, compte personnel et réinitialisation du mot de passe."},
    {"name": "users", "description": "Gestion des comptes (admin)."},
    {"name": "daos", "description": "Dossiers d'appel d'offres, statut et exports."},
    {"name": "tasks", "description": "Tâches d'un dossier et assignation."},
    {"name": "comments", "description": "Commentaires sur les tâches."},
]


def build_store(settings: Settings) -> DocumentStore:
    if settings.STORAGE_BACKEND == "cosmos":
        from app.services.cosmos_store import CosmosStore
        return CosmosStore(settings)
    return MemoryStore()


def create_app(settings: Optional[Settings] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Échoue au démarrage plutôt qu'à la première connexion
        settings.jwt_secret()
        app.state.store = store or build_store(settings)
        if settings.SEED_USERS:
            seed_users(
                app.state.store,
                settings.SEED_ADMIN_EMAIL,
                settings.SEED_ADMIN_PASSWORD,
                settings.DEFAULT_USER_PASSWORD,
            )
        logger.info("[app] démarrage (stockage : %s)", settings.STORAGE_BACKEND)
        try:
            yield
        finally:
            app.state.store.close()
            logger.info("[app] arrêt")

    app = FastAPI(
        title="Suivi DAO API",
        version="1.0.0",
        description="API de suivi des dossiers d'appel d'offres : tâches, équipes, statut et exports.",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.sessions = AuthSessions()
    app.state.mailer = EmailService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DaoError)
    async def dao_error_handler(request: Request, exc: DaoError):
        if isinstance(exc, StorageError):
            logger.error("[app] erreur de stockage sur %s %s : %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Données invalides.",
                "code": "VALIDATION_ERROR",
                "details": validation_details(exc.errors()),
            },
        )

    app.include_router(health.router, prefix="/api")
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/auth", tags=["users"])
    app.include_router(daos.router, prefix="/api/dao", tags=["daos"])
    app.include_router(tasks.router, prefix="/api/dao", tags=["tasks"])
    app.include_router(comments.router, prefix="/api/comments", tags=["comments"])
    return app


app = create_app()
