# app/routers/auth.py
"""
Endpoints d'authentification et de compte personnel.
- Publics : login, mot de passe oublié, vérification du code, réinitialisation
- Authentifiés : logout, me, changement de mot de passe, profil
"""
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends

from app.auth import (
    AuthSessions,
    create_access_token,
    get_current_user,
    get_sessions,
    get_token_claims,
)
from app.config import Settings
from app.deps import get_mailer, get_settings, get_store
from app.models.auth import (
    AppUser,
    AuthResponse,
    ChangePasswordInput,
    ForgotPasswordInput,
    LoginInput,
    ProfileInput,
    ResetPasswordInput,
    User,
    VerifyResetInput,
)
from app.models.base import CamelModel
from app.services.email_service import EmailService
from app.services.store import DocumentStore
from app.services import users_service
from Core.errors import ValidationError

router = APIRouter()


class MessageResponse(CamelModel):
    message: str


class MeResponse(CamelModel):
    user: User


class ForgotPasswordResponse(CamelModel):
    message: str
    development_token: Optional[str] = None


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginInput,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    user = users_service.authenticate(store, body.email, body.password)
    return AuthResponse(user=user.identity(), token=create_access_token(user, settings))


@router.post("/logout", response_model=MessageResponse)
def logout(
    claims: dict = Depends(get_token_claims),
    sessions: AuthSessions = Depends(get_sessions),
):
    sessions.revoke(claims.get("jti", ""), float(claims.get("exp", 0)))
    return MessageResponse(message="Déconnexion réussie.")


@router.get("/me", response_model=MeResponse)
def me(
    user: AppUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return MeResponse(user=users_service.get_user(store, user.id))


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordInput,
    user: AppUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    users_service.change_password(store, user.id, body.new_password, body.current_password)
    return MessageResponse(message="Mot de passe modifié avec succès.")


@router.put("/profile", response_model=User)
def update_profile(
    body: ProfileInput,
    user: AppUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return users_service.update_profile(store, user.id, body)


@router.post("/forgot-password", response_model=ForgotPasswordResponse, response_model_exclude_none=True)
def forgot_password(
    body: ForgotPasswordInput,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    mailer: EmailService = Depends(get_mailer),
):
    """
    Même réponse que l'email existe ou non.
    En DEBUG, le code est renvoyé dans developmentToken.
    """
    ttl = timedelta(minutes=settings.RESET_TOKEN_TTL_MINUTES)
    code = users_service.request_password_reset(store, body.email, mailer, ttl)
    return ForgotPasswordResponse(
        message="Si cet email existe, un code de réinitialisation a été envoyé.",
        development_token=code if settings.DEBUG else None,
    )


@router.post("/verify-reset-token", response_model=MessageResponse)
def verify_reset_token(
    body: VerifyResetInput,
    store: DocumentStore = Depends(get_store),
):
    if not users_service.verify_reset_token(store, body.email, body.token):
        raise ValidationError("Code invalide ou expiré.", field="token", code="INVALID_RESET_TOKEN")
    return MessageResponse(message="Code vérifié avec succès.")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordInput,
    store: DocumentStore = Depends(get_store),
):
    users_service.reset_password(store, body.email, body.token, body.new_password)
    return MessageResponse(message="Mot de passe réinitialisé avec succès.")
