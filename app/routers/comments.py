# app/routers/comments.py
from typing import List

from fastapi import APIRouter, Depends, Query, status

from app.auth import get_current_user
from app.deps import get_store
from app.models.auth import AppUser
from app.models.base import CamelModel
from app.models.comment import Comment, NewCommentInput, UpdateCommentInput
from app.services import comments_service
from app.services.store import DocumentStore
from Core.policy import Operation, ensure_allowed

router = APIRouter()


class MessageResponse(CamelModel):
    message: str


@router.get("/recent", response_model=List[Comment])
def recent_comments(
    limit: int = Query(comments_service.RECENT_DEFAULT, ge=1, le=comments_service.RECENT_MAX),
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    ensure_allowed(user, Operation.READ_COMMENTS)
    return comments_service.list_recent(store, limit)


@router.get("/dao/{dao_id}", response_model=List[Comment])
def dao_comments(
    dao_id: str,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    ensure_allowed(user, Operation.READ_COMMENTS)
    return comments_service.list_for_dao(store, dao_id)


@router.get("/dao/{dao_id}/task/{task_id}", response_model=List[Comment])
def task_comments(
    dao_id: str,
    task_id: int,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    ensure_allowed(user, Operation.READ_COMMENTS)
    return comments_service.list_for_task(store, dao_id, task_id)


@router.post("", response_model=Comment, status_code=status.HTTP_201_CREATED)
def add_comment(
    body: NewCommentInput,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    return comments_service.add_comment(store, body, user)


@router.put("/{comment_id}", response_model=Comment)
def update_comment(
    comment_id: str,
    body: UpdateCommentInput,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    """Réservé à l'auteur du commentaire (ou à un admin)."""
    return comments_service.update_comment(store, comment_id, body, user)


@router.delete("/{comment_id}", response_model=MessageResponse)
def delete_comment(
    comment_id: str,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    comments_service.delete_comment(store, comment_id, user)
    return MessageResponse(message="Commentaire supprimé.")
