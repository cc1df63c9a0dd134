# app/models/comment.py
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.models.base import CamelModel
from Core.text import strip_tags


class Comment(CamelModel):
    """Commentaire posté sur une tâche d'un DAO."""
    id: str
    dao_id: str
    task_id: int
    user_id: str
    user_name: str                        # dénormalisé à la création
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class NewCommentInput(CamelModel):
    dao_id: str = Field(..., min_length=1, max_length=100)
    task_id: int = Field(..., ge=1)
    content: str = Field(..., min_length=1, max_length=2000)

    @field_validator("content", mode="before")
    @classmethod
    def clean_content(cls, v):
        return strip_tags(v) if isinstance(v, str) else v


class UpdateCommentInput(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)

    @field_validator("content", mode="before")
    @classmethod
    def clean_content(cls, v):
        return strip_tags(v) if isinstance(v, str) else v
