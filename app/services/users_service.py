# app/services/users_service.py
"""
Comptes utilisateurs : CRUD admin, authentification, profil et
réinitialisation du mot de passe.

Les documents du conteneur "users" sont des UserRecord (hash et code de
réinitialisation inclus) ; seuls des User publics sortent de ce module
vers les routes.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from app.models.auth import (
    AppUser,
    NewUser,
    ProfileInput,
    UpdateUserInput,
    User,
    UserRecord,
)
from app.services.email_service import EmailService
from app.services.store import DocumentStore
from Core.errors import Conflict, NotFound, Unauthorized, ValidationError
from Core.policy import Operation, ensure_allowed, ensure_can_change_role, ensure_can_deactivate
from Core.security import (
    RESET_TOKEN_TTL,
    check_reset_token,
    consume_reset_token,
    hash_password,
    issue_reset_token,
    verify_password,
)

logger = logging.getLogger(__name__)

USERS = "users"


def _now(now: Optional[datetime] = None) -> datetime:
    return now or datetime.now(timezone.utc)


def _new_user_id() -> str:
    return f"user_{uuid.uuid4().hex}"


def _save(store: DocumentStore, record: UserRecord, etag: Optional[str] = None) -> UserRecord:
    return UserRecord.model_validate(store.replace(USERS, record.to_doc(), etag=etag))


# ---------- Lecture ----------

def get_user_record(store: DocumentStore, user_id: str) -> UserRecord:
    doc = store.find_by_id(USERS, user_id)
    if doc is None:
        raise NotFound("Utilisateur introuvable.", code="USER_NOT_FOUND")
    return UserRecord.model_validate(doc)


def get_user(store: DocumentStore, user_id: str) -> User:
    return get_user_record(store, user_id).public()


def get_user_by_email(store: DocumentStore, email: str) -> Optional[UserRecord]:
    email = (email or "").lower().strip()
    if not email:
        return None
    doc = store.find_one(USERS, email=email)
    return UserRecord.model_validate(doc) if doc else None


def list_users(store: DocumentStore, active_only: bool = False) -> List[User]:
    docs = store.find_many(USERS, isActive=True) if active_only else store.find_all(USERS)
    users = [UserRecord.model_validate(d).public() for d in docs]
    return sorted(users, key=lambda u: u.email)


def _ensure_email_free(store: DocumentStore, email: str, user_id: Optional[str] = None) -> None:
    existing = get_user_by_email(store, email)
    if existing and existing.id != user_id:
        raise Conflict("Un utilisateur avec cet email existe déjà.", code="EMAIL_EXISTS")


# ---------- Administration ----------

def create_user(
    store: DocumentStore,
    body: NewUser,
    default_password: str,
    now: Optional[datetime] = None,
) -> User:
    """Crée un compte ; sans mot de passe fourni, le mot de passe par défaut est utilisé."""
    _ensure_email_free(store, body.email)
    record = UserRecord(
        id=_new_user_id(),
        email=body.email,
        name=body.name,
        role=body.role,
        is_active=True,
        created_at=_now(now),
        password_hash=hash_password(body.password or default_password),
    )
    store.insert(USERS, record.to_doc())
    logger.info("[users] compte créé : %s (%s)", record.email, record.role)
    return record.public()


def update_user(
    store: DocumentStore,
    user_id: str,
    patch: UpdateUserInput,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> User:
    ensure_allowed(actor, Operation.MANAGE_USERS)
    record = get_user_record(store, user_id)
    fields = patch.model_fields_set

    if "is_active" in fields and patch.is_active is False:
        ensure_can_deactivate(actor, user_id)
    if "role" in fields and patch.role is not None and patch.role != record.role:
        ensure_can_change_role(actor, user_id)
    if "email" in fields and patch.email:
        _ensure_email_free(store, patch.email, user_id)

    changes = {f: getattr(patch, f) for f in fields if getattr(patch, f) is not None}
    changes["updated_at"] = _now(now)
    updated = record.model_copy(update=changes)
    saved = _save(store, updated)
    logger.info("[users] compte %s modifié par %s : %s", user_id, actor.id, sorted(fields))
    return saved.public()


def set_role(
    store: DocumentStore,
    user_id: str,
    role: str,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> User:
    ensure_can_change_role(actor, user_id)
    return update_user(store, user_id, UpdateUserInput(role=role), actor, now)


def deactivate_user(
    store: DocumentStore,
    user_id: str,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> User:
    """Désactivation logique : le compte n'est jamais supprimé."""
    ensure_can_deactivate(actor, user_id)
    return update_user(store, user_id, UpdateUserInput(is_active=False), actor, now)


def activate_user(
    store: DocumentStore,
    user_id: str,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> User:
    return update_user(store, user_id, UpdateUserInput(is_active=True), actor, now)


# ---------- Authentification ----------

def authenticate(
    store: DocumentStore,
    email: str,
    password: str,
    now: Optional[datetime] = None,
) -> User:
    """Vérifie les identifiants et met à jour lastLogin. Un compte désactivé ne peut pas se connecter."""
    record = get_user_by_email(store, email)
    if record is None or not record.is_active or not verify_password(password, record.password_hash):
        logger.info("[auth] échec de connexion pour %s", email)
        raise Unauthorized("Email ou mot de passe incorrect.", code="INVALID_CREDENTIALS")

    doc = store.update(USERS, record.id, {"lastLogin": _now(now).isoformat()})
    logger.info("[auth] connexion de %s", record.email)
    return UserRecord.model_validate(doc).public()


def change_password(
    store: DocumentStore,
    user_id: str,
    new_password: str,
    current_password: Optional[str] = None,
    now: Optional[datetime] = None,
) -> None:
    record = get_user_record(store, user_id)
    if current_password is not None and not verify_password(current_password, record.password_hash):
        raise ValidationError(
            "Mot de passe actuel incorrect.",
            field="currentPassword",
            code="INVALID_PASSWORD",
        )
    updated = record.model_copy(update={
        "password_hash": hash_password(new_password),
        "updated_at": _now(now),
    })
    _save(store, updated)
    logger.info("[auth] mot de passe modifié pour %s", record.email)


def update_profile(
    store: DocumentStore,
    user_id: str,
    body: ProfileInput,
    now: Optional[datetime] = None,
) -> User:
    record = get_user_record(store, user_id)
    _ensure_email_free(store, body.email, user_id)
    updated = record.model_copy(update={
        "name": body.name,
        "email": body.email,
        "updated_at": _now(now),
    })
    return _save(store, updated).public()


# ---------- Réinitialisation du mot de passe ----------

def request_password_reset(
    store: DocumentStore,
    email: str,
    mailer: EmailService,
    ttl: timedelta = RESET_TOKEN_TTL,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """
    Émet un nouveau code (remplace le précédent) et l'envoie par email.
    Renvoie le code, ou None si l'email est inconnu ou le compte inactif :
    la route répond de la même façon dans les deux cas.
    """
    record = get_user_by_email(store, email)
    if record is None or not record.is_active:
        logger.info("[auth] demande de réinitialisation pour un email inconnu ou inactif")
        return None

    updated, code = issue_reset_token(record, _now(now), ttl)
    _save(store, updated)
    mailer.send_reset_code(record.email, record.name, code, int(ttl.total_seconds() // 60))
    logger.info("[auth] code de réinitialisation émis pour %s", record.email)
    return code


def verify_reset_token(
    store: DocumentStore,
    email: str,
    code: str,
    now: Optional[datetime] = None,
) -> bool:
    """Vérifie le code sans le consommer ; un code expiré est effacé."""
    now = _now(now)
    record = get_user_by_email(store, email)
    if record is None:
        return False
    if record.reset_expires and now > record.reset_expires:
        _save(store, record.model_copy(update={"reset_code": None, "reset_expires": None}))
        return False
    return check_reset_token(record, code, now)


def reset_password(
    store: DocumentStore,
    email: str,
    code: str,
    new_password: str,
    now: Optional[datetime] = None,
) -> None:
    doc = store.find_one(USERS, email=(email or "").lower().strip())
    if doc is None:
        raise ValidationError("Code invalide ou expiré.", field="token", code="INVALID_RESET_TOKEN")
    record = UserRecord.model_validate(doc)
    # CAS sur l'etag : deux réinitialisations concurrentes ne consomment pas le même code
    etag = doc.get("_etag")
    updated = consume_reset_token(record, code, new_password, _now(now))
    _save(store, updated, etag=etag)
    logger.info("[auth] mot de passe réinitialisé pour %s", record.email)


# ---------- Amorçage ----------

SEED_USERS = [
    ("Marie Dubois", "marie.dubois@2snd.fr"),
    ("Pierre Martin", "pierre.martin@2snd.fr"),
]


def seed_users(
    store: DocumentStore,
    admin_email: str,
    admin_password: str,
    default_password: str,
) -> int:
    """Crée l'administrateur et les comptes de démonstration si le conteneur est vide."""
    if store.find_all(USERS):
        return 0

    created = 0
    create_user(store, NewUser(email=admin_email, name="Admin User", role="admin", password=admin_password), default_password)
    created += 1
    for name, email in SEED_USERS:
        create_user(store, NewUser(email=email, name=name, role="user"), default_password)
        created += 1
    logger.info("[users] %d comptes initiaux créés", created)
    return created
