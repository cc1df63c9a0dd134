# app/models/dao.py
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from app.models.base import CamelModel
from Core.text import strip_tags

MemberRole = Literal["chef_equipe", "membre_equipe"]
DaoStatus = Literal["completed", "urgent", "safe", "default"]


def _date_part(v):
    # "2025-03-15T00:00:00.000Z" -> "2025-03-15"
    if isinstance(v, str) and "T" in v:
        return v.split("T", 1)[0]
    return v


def _check_team(equipe: List["TeamMember"]) -> None:
    ids = [m.id for m in equipe]
    if len(set(ids)) != len(ids):
        raise ValueError("Les identifiants des membres doivent être uniques")
    if not any(m.role == "chef_equipe" for m in equipe):
        raise ValueError("Au moins un chef_equipe est requis")


def _check_task_ids(tasks: List["Task"]) -> None:
    ids = [t.id for t in tasks]
    if len(set(ids)) != len(ids):
        raise ValueError("Les identifiants de tâches doivent être uniques")


class TeamMember(CamelModel):
    """Membre de l'équipe d'un dossier."""
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    role: MemberRole
    email: Optional[EmailStr] = None

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return strip_tags(v) if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v


class Task(CamelModel):
    """Élément de la check-list d'un dossier."""
    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    progress: Optional[int] = Field(None, ge=0, le=100)
    comment: Optional[str] = Field(None, max_length=1000)
    is_applicable: bool = True
    assigned_to: Optional[str] = Field(None, max_length=50)
    last_updated_by: Optional[str] = None
    last_updated_at: Optional[datetime] = None

    @field_validator("name", "comment", mode="before")
    @classmethod
    def clean_text(cls, v):
        return strip_tags(v) if isinstance(v, str) else v

    @model_validator(mode="after")
    def progress_only_if_applicable(self):
        if not self.is_applicable:
            self.progress = None
        return self


class Dao(CamelModel):
    """Dossier d'appel d'offres tel qu'il est stocké et renvoyé au front."""
    id: str
    numero_liste: str
    objet_dossier: str
    reference: str
    autorite_contractante: str
    date_depot: date
    equipe: List[TeamMember]
    tasks: List[Task] = []
    last_task_id: int = 0                 # plus grand id de tâche jamais attribué
    created_at: datetime
    updated_at: datetime

    @field_validator("date_depot", mode="before")
    @classmethod
    def normalize_date(cls, v):
        return _date_part(v)

    @model_validator(mode="after")
    def check_invariants(self):
        _check_team(self.equipe)
        _check_task_ids(self.tasks)
        return self

    def member_ids(self) -> set:
        return {m.id for m in self.equipe}

    def chef_equipe(self) -> Optional[TeamMember]:
        return next((m for m in self.equipe if m.role == "chef_equipe"), None)

    def find_task(self, task_id: int) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)


class DaoWithStatus(Dao):
    """DAO enrichi de sa progression et de son statut calculés."""
    progress: int
    status: DaoStatus


# ---------- Entrées API ----------

class DaoCreateInput(CamelModel):
    numero_liste: Optional[str] = Field(None, max_length=50)
    objet_dossier: str = Field(..., min_length=1, max_length=500)
    reference: str = Field(..., min_length=1, max_length=200)
    autorite_contractante: str = Field(..., min_length=1, max_length=200)
    date_depot: date
    equipe: List[TeamMember] = Field(..., min_length=1, max_length=20)
    tasks: Optional[List[Task]] = Field(None, max_length=50)

    @field_validator("date_depot", mode="before")
    @classmethod
    def normalize_date(cls, v):
        return _date_part(v)

    @field_validator("numero_liste", "objet_dossier", "reference", "autorite_contractante", mode="before")
    @classmethod
    def clean_text(cls, v):
        return strip_tags(v) if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_invariants(self):
        _check_team(self.equipe)
        if self.tasks:
            _check_task_ids(self.tasks)
        if self.numero_liste == "":
            self.numero_liste = None
        return self


class DaoUpdateInput(CamelModel):
    """Mise à jour partielle des champs d'un DAO (hors tâches)."""
    numero_liste: Optional[str] = Field(None, min_length=1, max_length=50)
    objet_dossier: Optional[str] = Field(None, min_length=1, max_length=500)
    reference: Optional[str] = Field(None, min_length=1, max_length=200)
    autorite_contractante: Optional[str] = Field(None, min_length=1, max_length=200)
    date_depot: Optional[date] = None
    equipe: Optional[List[TeamMember]] = Field(None, min_length=1, max_length=20)

    @field_validator("date_depot", mode="before")
    @classmethod
    def normalize_date(cls, v):
        return _date_part(v)

    @field_validator("numero_liste", "objet_dossier", "reference", "autorite_contractante", mode="before")
    @classmethod
    def clean_text(cls, v):
        return strip_tags(v) if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_team(self):
        if self.equipe is not None:
            _check_team(self.equipe)
        return self


class TaskCreateInput(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    is_applicable: bool = True
    progress: Optional[int] = None
    comment: Optional[str] = Field(None, max_length=1000)
    assigned_to: Optional[str] = Field(None, max_length=50)

    @field_validator("name", "comment", mode="before")
    @classmethod
    def clean_text(cls, v):
        return strip_tags(v) if isinstance(v, str) else v


class TaskUpdateInput(CamelModel):
    """
    Patch partiel d'une tâche : seuls les champs présents dans le corps
    de la requête sont appliqués (voir model_fields_set).
    """
    progress: Optional[int] = None
    comment: Optional[str] = Field(None, max_length=1000)
    is_applicable: Optional[bool] = None
    assigned_to: Optional[str] = Field(None, max_length=50)

    @field_validator("comment", mode="before")
    @classmethod
    def clean_text(cls, v):
        return strip_tags(v) if isinstance(v, str) else v


class TaskRenameInput(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("name", mode="before")
    @classmethod
    def clean_text(cls, v):
        return strip_tags(v) if isinstance(v, str) else v


class TaskAssignInput(CamelModel):
    member_id: str = Field(..., min_length=1, max_length=50)
