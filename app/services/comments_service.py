# app/services/comments_service.py
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from app.models.auth import AppUser
from app.models.comment import Comment, NewCommentInput, UpdateCommentInput
from app.services.daos_service import get_dao
from app.services.store import DocumentStore
from Core.errors import NotFound
from Core.policy import Operation, ensure_allowed, ensure_can_edit_comment

logger = logging.getLogger(__name__)

COMMENTS = "comments"

RECENT_DEFAULT = 10
RECENT_MAX = 100


def _newest_first(comments: List[Comment]) -> List[Comment]:
    return sorted(comments, key=lambda c: c.created_at, reverse=True)


def list_for_dao(store: DocumentStore, dao_id: str) -> List[Comment]:
    docs = store.find_many(COMMENTS, daoId=dao_id)
    return _newest_first([Comment.model_validate(d) for d in docs])


def list_for_task(store: DocumentStore, dao_id: str, task_id: int) -> List[Comment]:
    docs = store.find_many(COMMENTS, daoId=dao_id, taskId=task_id)
    return _newest_first([Comment.model_validate(d) for d in docs])


def list_recent(store: DocumentStore, limit: int = RECENT_DEFAULT) -> List[Comment]:
    limit = max(1, min(limit, RECENT_MAX))
    comments = [Comment.model_validate(d) for d in store.find_all(COMMENTS)]
    return _newest_first(comments)[:limit]


def get_comment(store: DocumentStore, comment_id: str) -> Comment:
    doc = store.find_by_id(COMMENTS, comment_id)
    if doc is None:
        raise NotFound("Commentaire introuvable.", code="COMMENT_NOT_FOUND")
    return Comment.model_validate(doc)


def add_comment(
    store: DocumentStore,
    body: NewCommentInput,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Comment:
    """Le DAO et la tâche visés doivent exister ; le nom de l'auteur est recopié."""
    ensure_allowed(actor, Operation.WRITE_COMMENT)
    dao = get_dao(store, body.dao_id)
    if dao.find_task(body.task_id) is None:
        raise NotFound(f"Tâche {body.task_id} introuvable.", code="TASK_NOT_FOUND")

    comment = Comment(
        id=f"comment_{uuid.uuid4().hex}",
        dao_id=body.dao_id,
        task_id=body.task_id,
        user_id=actor.id,
        user_name=actor.name,
        content=body.content,
        created_at=now or datetime.now(timezone.utc),
    )
    store.insert(COMMENTS, comment.to_doc())
    logger.info("[comments] %s ajouté sur %s/%s par %s", comment.id, dao.numero_liste, body.task_id, actor.id)
    return comment


def update_comment(
    store: DocumentStore,
    comment_id: str,
    body: UpdateCommentInput,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Comment:
    comment = get_comment(store, comment_id)
    ensure_can_edit_comment(actor, comment)
    updated = comment.model_copy(update={
        "content": body.content,
        "updated_at": now or datetime.now(timezone.utc),
    })
    store.replace(COMMENTS, updated.to_doc())
    return updated


def delete_comment(store: DocumentStore, comment_id: str, actor: AppUser) -> None:
    comment = get_comment(store, comment_id)
    ensure_can_edit_comment(actor, comment)
    store.delete(COMMENTS, comment_id)
    logger.info("[comments] %s supprimé par %s", comment_id, actor.id)


def delete_for_task(store: DocumentStore, dao_id: str, task_id: int) -> int:
    """Supprime les commentaires d'une tâche supprimée ; renvoie leur nombre."""
    docs = store.find_many(COMMENTS, daoId=dao_id, taskId=task_id)
    for d in docs:
        store.delete(COMMENTS, d["id"])
    return len(docs)
