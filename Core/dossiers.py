# Core/dossiers.py
"""
Création et mise à jour des champs d'un DAO (hors opérations sur les tâches).
L'unicité du numéro de liste est vérifiée par le service, qui a accès au stockage.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from app.models.auth import AppUser
from app.models.dao import Dao, DaoCreateInput, DaoUpdateInput, Task
from Core.defaults import DEFAULT_TASKS
from Core.errors import InvalidReference
from Core.policy import Operation, ensure_allowed


def new_dao_id() -> str:
    return f"dao_{uuid.uuid4().hex}"


def build_dao(
    payload: DaoCreateInput,
    numero_liste: str,
    actor: AppUser,
    now: Optional[datetime] = None,
    dao_id: Optional[str] = None,
) -> Dao:
    """
    Construit un nouveau DAO. Sans liste de tâches, la check-list standard
    est appliquée ; une liste vide donne un DAO sans tâche.
    """
    ensure_allowed(actor, Operation.CREATE_DAO)
    now = now or datetime.now(timezone.utc)

    if payload.tasks is not None:
        # champs d'audit réservés au serveur
        tasks = [t.model_copy(update={"last_updated_by": None, "last_updated_at": None})
                 for t in payload.tasks]
    else:
        tasks = [Task(id=i, name=name, progress=None, is_applicable=True)
                 for i, name in enumerate(DEFAULT_TASKS, start=1)]

    member_ids = {m.id for m in payload.equipe}
    for t in tasks:
        if t.assigned_to and t.assigned_to not in member_ids:
            raise InvalidReference(
                f"Tâche {t.id} : le membre '{t.assigned_to}' ne fait pas partie de l'équipe du DAO",
            )

    return Dao(
        id=dao_id or new_dao_id(),
        numero_liste=numero_liste,
        objet_dossier=payload.objet_dossier,
        reference=payload.reference,
        autorite_contractante=payload.autorite_contractante,
        date_depot=payload.date_depot,
        equipe=payload.equipe,
        tasks=tasks,
        last_task_id=max((t.id for t in tasks), default=0),
        created_at=now,
        updated_at=now,
    )


def apply_dao_update(
    dao: Dao,
    patch: DaoUpdateInput,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Dao:
    """
    Applique les champs présents dans le patch. Si l'équipe change, les tâches
    assignées à un membre retiré sont désassignées (et horodatées).
    """
    ensure_allowed(actor, Operation.UPDATE_DAO)
    now = now or datetime.now(timezone.utc)

    updated = dao.model_copy(deep=True)
    for field in patch.model_fields_set:
        value = getattr(patch, field)
        if value is None:
            continue
        setattr(updated, field, value)

    if "equipe" in patch.model_fields_set and patch.equipe is not None:
        remaining = updated.member_ids()
        for task in updated.tasks:
            if task.assigned_to and task.assigned_to not in remaining:
                task.assigned_to = None
                task.last_updated_by = actor.id
                task.last_updated_at = now

    updated.updated_at = now
    return updated
