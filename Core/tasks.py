# Core/tasks.py
"""
Règles de gestion des tâches d'un DAO.

Chaque fonction reçoit un DAO déjà chargé et l'acteur de la requête, et
renvoie une copie modifiée : le DAO d'entrée n'est jamais muté, une erreur
laisse donc le dossier intact.

Toute mutation d'une tâche met à jour lastUpdatedBy / lastUpdatedAt sur la
tâche et updatedAt sur le DAO, y compris pour un patch sans effet.
"""
from datetime import datetime, timezone
from typing import Iterable, Optional

from app.models.auth import AppUser
from app.models.dao import Dao, Task, TaskCreateInput, TaskUpdateInput
from Core.errors import InvalidReference, NotFound, ValidationError
from Core.policy import Operation, ensure_allowed
from Core.text import strip_tags


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def next_task_id(tasks: Iterable[Task], last_task_id: int = 0) -> int:
    """
    max(ids existants) + 1, sans jamais redescendre sous le plus grand id
    déjà attribué : un id supprimé n'est pas réutilisé.
    """
    return max(max((t.id for t in tasks), default=0), last_task_id) + 1


def _check_member(dao: Dao, member_id: str) -> None:
    if member_id not in dao.member_ids():
        raise InvalidReference(
            f"Le membre '{member_id}' ne fait pas partie de l'équipe du DAO {dao.numero_liste}",
        )


def _get_task(dao: Dao, task_id: int) -> Task:
    task = dao.find_task(task_id)
    if task is None:
        raise NotFound(f"Tâche {task_id} introuvable.", code="TASK_NOT_FOUND")
    return task


def _stamp(dao: Dao, task: Task, actor: AppUser, ts: datetime) -> None:
    task.last_updated_by = actor.id
    task.last_updated_at = ts
    dao.updated_at = ts


def add_task(
    dao: Dao,
    draft: TaskCreateInput,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Dao:
    ensure_allowed(actor, Operation.MANAGE_TASKS)

    name = strip_tags(draft.name)
    if not name:
        raise ValidationError("Le nom de la tâche est requis.", field="name")

    progress = None
    if draft.is_applicable and draft.progress is not None:
        if not 0 <= draft.progress <= 100:
            raise ValidationError("L'avancement doit être compris entre 0 et 100.", field="progress")
        progress = draft.progress

    if draft.assigned_to:
        _check_member(dao, draft.assigned_to)

    ts = _now(now)
    updated = dao.model_copy(deep=True)
    task = Task(
        id=next_task_id(updated.tasks, updated.last_task_id),
        name=name,
        progress=progress,
        comment=draft.comment,
        is_applicable=draft.is_applicable,
        assigned_to=draft.assigned_to or None,
    )
    _stamp(updated, task, actor, ts)
    updated.tasks.append(task)
    updated.last_task_id = task.id
    return updated


def update_task(
    dao: Dao,
    task_id: int,
    patch: TaskUpdateInput,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Dao:
    """
    Mise à jour partielle : seuls les champs présents dans le patch sont appliqués.
    - progress est borné à [0, 100] ; ignoré (null) si la tâche n'est pas applicable
    - isApplicable=false dans le même patch force progress à null
    - comment est remplacé tel quel
    - assignedTo doit désigner un membre de l'équipe ; null retire l'assignation
    """
    ensure_allowed(actor, Operation.UPDATE_TASK)

    updated = dao.model_copy(deep=True)
    task = _get_task(updated, task_id)
    fields = patch.model_fields_set

    if "assigned_to" in fields:
        if patch.assigned_to:
            _check_member(updated, patch.assigned_to)
        task.assigned_to = patch.assigned_to or None

    if "is_applicable" in fields and patch.is_applicable is not None:
        task.is_applicable = patch.is_applicable

    if "comment" in fields:
        task.comment = patch.comment

    if not task.is_applicable:
        task.progress = None
    elif "progress" in fields:
        task.progress = None if patch.progress is None else max(0, min(100, patch.progress))

    _stamp(updated, task, actor, _now(now))
    return updated


def assign_task(
    dao: Dao,
    task_id: int,
    member_id: str,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Dao:
    return update_task(dao, task_id, TaskUpdateInput(assigned_to=member_id), actor, now)


def unassign_task(
    dao: Dao,
    task_id: int,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Dao:
    return update_task(dao, task_id, TaskUpdateInput(assigned_to=None), actor, now)


def rename_task(
    dao: Dao,
    task_id: int,
    name: str,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Dao:
    ensure_allowed(actor, Operation.MANAGE_TASKS)

    name = strip_tags(name)
    if not name:
        raise ValidationError("Le nom de la tâche est requis.", field="name")

    updated = dao.model_copy(deep=True)
    task = _get_task(updated, task_id)
    task.name = name
    _stamp(updated, task, actor, _now(now))
    return updated


def delete_task(
    dao: Dao,
    task_id: int,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Dao:
    """Supprime la tâche sans renuméroter les autres."""
    ensure_allowed(actor, Operation.MANAGE_TASKS)

    _get_task(dao, task_id)
    updated = dao.model_copy(deep=True)
    updated.last_task_id = max(updated.last_task_id, *(t.id for t in updated.tasks))
    updated.tasks = [t for t in updated.tasks if t.id != task_id]
    updated.updated_at = _now(now)
    return updated
