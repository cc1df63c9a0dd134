# app/auth.py
"""
Authentification par jeton JWT (HS256, python-jose).

Le jeton est lu une fois par requête (en-tête Authorization: Bearer) et
transformé en AppUser, figé pour toute la durée de la requête.
Un jeton absent, invalide, expiré, révoqué (déconnexion) ou appartenant à
un compte désactivé donne un 401.
"""
import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import Settings
from app.deps import get_settings, get_store
from app.models.auth import AppUser, User
from app.services.store import DocumentStore
from app.services.users_service import get_user_record
from Core.errors import NotFound, Unauthorized
from Core.policy import Operation, ensure_allowed

security = HTTPBearer(auto_error=False)


class AuthSessions:
    """
    Jetons révoqués par une déconnexion (jti -> expiration).
    Une entrée n'a plus d'utilité une fois le jeton expiré : elle est purgée.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._revoked: Dict[str, float] = {}

    def revoke(self, jti: str, exp: float) -> None:
        with self._lock:
            self._purge()
            self._revoked[jti] = exp

    def is_revoked(self, jti: Optional[str]) -> bool:
        if not jti:
            return False
        with self._lock:
            return jti in self._revoked

    def _purge(self) -> None:
        now = time.time()
        for jti in [j for j, exp in self._revoked.items() if exp < now]:
            del self._revoked[jti]


def create_access_token(user: User, settings: Settings, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    claims = {
        "sub": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.JWT_EXPIRES_MINUTES)).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, settings.jwt_secret(), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(
            token,
            settings.jwt_secret(),
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError as e:
        raise Unauthorized("Jeton invalide ou expiré.", code="INVALID_TOKEN") from e


def get_sessions(request: Request) -> AuthSessions:
    return request.app.state.sessions


async def get_token_claims(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
    sessions: AuthSessions = Depends(get_sessions),
) -> dict:
    if creds is None:
        raise Unauthorized("Non authentifié.")
    claims = decode_access_token(creds.credentials, settings)
    if sessions.is_revoked(claims.get("jti")):
        raise Unauthorized("Session terminée, veuillez vous reconnecter.", code="TOKEN_REVOKED")
    return claims


async def get_current_user(
    claims: dict = Depends(get_token_claims),
    store: DocumentStore = Depends(get_store),
) -> AppUser:
    user_id = claims.get("sub")
    if not user_id:
        raise Unauthorized("Jeton invalide ou expiré.", code="INVALID_TOKEN")
    try:
        record = get_user_record(store, user_id)
    except NotFound as e:
        raise Unauthorized("Utilisateur inconnu.", code="INVALID_TOKEN") from e
    if not record.is_active:
        raise Unauthorized("Compte désactivé.", code="ACCOUNT_DISABLED")
    return record.public().identity()


async def require_admin(user: AppUser = Depends(get_current_user)) -> AppUser:
    ensure_allowed(user, Operation.MANAGE_USERS)
    return user
