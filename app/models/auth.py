# app/models/auth.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator

from app.models.base import CamelModel
from Core.text import strip_tags

Role = Literal["admin", "user"]


def _lower(v):
    return v.strip().lower() if isinstance(v, str) else v


class AppUser(CamelModel):
    """Identité de l'utilisateur authentifié, attachée à la requête (lecture seule)."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: EmailStr
    name: str
    role: Role


class User(CamelModel):
    """Utilisateur tel qu'exposé au front (jamais le hash ni le code de réinitialisation)."""
    id: str
    email: EmailStr
    name: str
    role: Role
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    def identity(self) -> AppUser:
        return AppUser(id=self.id, email=self.email, name=self.name, role=self.role)


class UserRecord(User):
    """Document utilisateur stocké : ajoute les champs secrets."""
    password_hash: str
    reset_code: Optional[str] = None
    reset_expires: Optional[datetime] = None

    def public(self) -> User:
        return User.model_validate(self.model_dump(exclude={"password_hash", "reset_code", "reset_expires"}))


# ---------- Entrées API ----------

class LoginInput(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class AuthResponse(CamelModel):
    user: AppUser
    token: str


class NewUser(CamelModel):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    role: Role = "user"
    password: Optional[str] = Field(None, min_length=6, max_length=72)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return strip_tags(v) if isinstance(v, str) else v


class UpdateUserInput(CamelModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Optional[Role] = None
    is_active: Optional[bool] = None

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return strip_tags(v) if isinstance(v, str) else v


class RoleInput(CamelModel):
    role: Role


class ChangePasswordInput(CamelModel):
    current_password: Optional[str] = None
    new_password: str = Field(..., min_length=6, max_length=72)


class ProfileInput(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return strip_tags(v) if isinstance(v, str) else v


class ForgotPasswordInput(CamelModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class VerifyResetInput(CamelModel):
    email: EmailStr
    token: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class ResetPasswordInput(VerifyResetInput):
    new_password: str = Field(..., min_length=6, max_length=72)
