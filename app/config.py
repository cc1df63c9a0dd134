# app/config.py
from pydantic import BaseModel, PrivateAttr
import os
import secrets
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


class Settings(BaseModel):
    # Misc
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: list[str] = _csv(os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"))

    # ===== JWT =====
    JWT_SECRET: str = os.getenv("JWT_SECRET", "")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = int(os.getenv("JWT_EXPIRES_MINUTES", str(24 * 60)))
    JWT_ISSUER: str = os.getenv("JWT_ISSUER", "dao-management")
    JWT_AUDIENCE: str = os.getenv("JWT_AUDIENCE", "dao-app")

    # ===== Mots de passe =====
    RESET_TOKEN_TTL_MINUTES: int = int(os.getenv("RESET_TOKEN_TTL_MINUTES", "15"))
    DEFAULT_USER_PASSWORD: str = os.getenv("DEFAULT_USER_PASSWORD", "changeme123")
    SEED_USERS: bool = os.getenv("SEED_USERS", "true").lower() == "true"
    SEED_ADMIN_EMAIL: str = os.getenv("SEED_ADMIN_EMAIL", "admin@2snd.fr")
    SEED_ADMIN_PASSWORD: str = os.getenv("SEED_ADMIN_PASSWORD", "admin123")

    # ===== Stockage =====
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory")  # memory | cosmos

    # ===== Cosmos DB =====
    COSMOS_URI: str = os.getenv("COSMOS_URI", "")
    COSMOS_KEY: str = os.getenv("COSMOS_KEY", "")
    COSMOS_DB_NAME: str = os.getenv("COSMOS_DB_NAME", "suivi-dao")
    COSMOS_CONTAINER_DAOS: str = os.getenv("COSMOS_CONTAINER_DAOS", "daos")
    COSMOS_CONTAINER_USERS: str = os.getenv("COSMOS_CONTAINER_USERS", "users")
    COSMOS_CONTAINER_COMMENTS: str = os.getenv("COSMOS_CONTAINER_COMMENTS", "comments")
    COSMOS_CONTAINER_NUMEROS: str = os.getenv("COSMOS_CONTAINER_NUMEROS", "numeros")

    # ===== SMTP (codes de réinitialisation) =====
    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASS: str = os.getenv("SMTP_PASS", "")
    SMTP_FROM: str = os.getenv("SMTP_FROM", "")

    _dev_secret: str = PrivateAttr(default_factory=lambda: secrets.token_urlsafe(48))

    @property
    def SMTP_CONFIGURED(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASS)

    def jwt_secret(self) -> str:
        """
        Secret de signature des jetons. Hors DEBUG, un secret d'au moins
        32 caractères est obligatoire.
        """
        if len(self.JWT_SECRET) >= 32:
            return self.JWT_SECRET
        if not self.DEBUG:
            raise RuntimeError("JWT_SECRET manquant ou trop court (32 caractères minimum).")
        return self._dev_secret


settings = Settings()
