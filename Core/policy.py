# Core/policy.py
"""
Matrice des droits par rôle.

- anonyme : aucun accès (rejeté en 401 avant d'arriver ici)
- user    : lecture, mise à jour des DAO et des tâches, commentaires (les siens)
- admin   : tout, sauf se désactiver soi-même
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional

from app.models.auth import AppUser
from app.models.comment import Comment
from Core.errors import Forbidden, Unauthorized


class Operation(str, Enum):
    READ_DAO = "read_dao"
    CREATE_DAO = "create_dao"
    UPDATE_DAO = "update_dao"
    UPDATE_TASK = "update_task"
    MANAGE_TASKS = "manage_tasks"        # ajout, suppression, renommage
    DELETE_DAO = "delete_dao"
    MANAGE_USERS = "manage_users"
    UPDATE_OWN_ACCOUNT = "update_own_account"
    READ_COMMENTS = "read_comments"
    WRITE_COMMENT = "write_comment"
    EXPORT = "export"


_USER_OPS = frozenset({
    Operation.READ_DAO,
    Operation.UPDATE_DAO,
    Operation.UPDATE_TASK,
    Operation.UPDATE_OWN_ACCOUNT,
    Operation.READ_COMMENTS,
    Operation.WRITE_COMMENT,
    Operation.EXPORT,
})

PERMISSIONS: Dict[str, FrozenSet[Operation]] = {
    "user": _USER_OPS,
    "admin": frozenset(Operation),
}


def is_allowed(role: Optional[str], op: Operation) -> bool:
    if role is None:
        return False
    return op in PERMISSIONS.get(role, frozenset())


def ensure_allowed(actor: Optional[AppUser], op: Operation) -> None:
    if actor is None:
        raise Unauthorized("Non authentifié.")
    if not is_allowed(actor.role, op):
        raise Forbidden("Accès réservé aux administrateurs.")


def ensure_can_deactivate(actor: Optional[AppUser], target_user_id: str) -> None:
    ensure_allowed(actor, Operation.MANAGE_USERS)
    if actor.id == target_user_id:
        raise Forbidden("Impossible de désactiver votre propre compte.", code="SELF_DEACTIVATION")


def ensure_can_change_role(actor: Optional[AppUser], target_user_id: str) -> None:
    ensure_allowed(actor, Operation.MANAGE_USERS)
    if actor.id == target_user_id:
        raise Forbidden("Impossible de modifier votre propre rôle.", code="SELF_ROLE_CHANGE")


def ensure_can_edit_comment(actor: Optional[AppUser], comment: Comment) -> None:
    """Un commentaire n'est modifiable / supprimable que par son auteur ou un admin."""
    ensure_allowed(actor, Operation.WRITE_COMMENT)
    if actor.role != "admin" and comment.user_id != actor.id:
        raise Forbidden("Seul l'auteur du commentaire peut le modifier.")
