# Core/security.py
"""
Mots de passe (bcrypt) et codes de réinitialisation.

Un code de réinitialisation :
- 6 caractères alphanumériques majuscules,
- valable RESET_TOKEN_TTL minutes après émission,
- un seul code actif par utilisateur (une nouvelle demande remplace l'ancienne),
- usage unique : consommé par la réinitialisation effective.
"""
import hmac
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt

from app.models.auth import UserRecord
from Core.errors import ValidationError

BCRYPT_ROUNDS = 12
RESET_CODE_LENGTH = 6
RESET_TOKEN_TTL = timedelta(minutes=15)
_ALPHABET = string.ascii_uppercase + string.digits


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def generate_reset_code(length: int = RESET_CODE_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def issue_reset_token(
    user: UserRecord,
    now: Optional[datetime] = None,
    ttl: timedelta = RESET_TOKEN_TTL,
) -> Tuple[UserRecord, str]:
    now = now or datetime.now(timezone.utc)
    code = generate_reset_code()
    updated = user.model_copy(update={"reset_code": code, "reset_expires": now + ttl})
    return updated, code


def check_reset_token(user: UserRecord, code: str, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(timezone.utc)
    if not user.is_active or not user.reset_code or not user.reset_expires:
        return False
    if now > user.reset_expires:
        return False
    return hmac.compare_digest(user.reset_code, (code or "").strip().upper())


def consume_reset_token(
    user: UserRecord,
    code: str,
    new_password: str,
    now: Optional[datetime] = None,
) -> UserRecord:
    """Vérifie le code, applique le nouveau mot de passe et invalide le code."""
    if not check_reset_token(user, code, now):
        raise ValidationError("Code invalide ou expiré.", field="token", code="INVALID_RESET_TOKEN")
    return user.model_copy(update={
        "password_hash": hash_password(new_password),
        "reset_code": None,
        "reset_expires": None,
        "updated_at": now or datetime.now(timezone.utc),
    })
