# app/routers/tasks.py
"""
Endpoints des tâches d'un DAO.
- Tous les utilisateurs connectés : mise à jour, assignation
- Admins : ajout, renommage, suppression
"""
import logging

from fastapi import APIRouter, Depends, status

from app.auth import get_current_user
from app.deps import get_store
from app.models.auth import AppUser
from app.models.dao import (
    DaoWithStatus,
    TaskAssignInput,
    TaskCreateInput,
    TaskRenameInput,
    TaskUpdateInput,
)
from app.services import comments_service
from app.services.daos_service import mutate_dao
from app.services.store import DocumentStore
from Core import tasks as rules
from Core.progress import with_status

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{dao_id}/tasks", response_model=DaoWithStatus, status_code=status.HTTP_201_CREATED)
def add_task(
    dao_id: str,
    body: TaskCreateInput,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    dao = mutate_dao(store, dao_id, lambda d: rules.add_task(d, body, user))
    logger.info("[tasks] tâche %d ajoutée à %s par %s", dao.tasks[-1].id, dao.numero_liste, user.id)
    return with_status(dao)


@router.put("/{dao_id}/tasks/{task_id}", response_model=DaoWithStatus)
def update_task(
    dao_id: str,
    task_id: int,
    body: TaskUpdateInput,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    """Mise à jour partielle : seuls les champs envoyés sont modifiés."""
    dao = mutate_dao(store, dao_id, lambda d: rules.update_task(d, task_id, body, user))
    logger.info("[tasks] tâche %d de %s modifiée par %s : %s",
                task_id, dao.numero_liste, user.id, sorted(body.model_fields_set))
    return with_status(dao)


@router.put("/{dao_id}/tasks/{task_id}/name", response_model=DaoWithStatus)
def rename_task(
    dao_id: str,
    task_id: int,
    body: TaskRenameInput,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    dao = mutate_dao(store, dao_id, lambda d: rules.rename_task(d, task_id, body.name, user))
    return with_status(dao)


@router.put("/{dao_id}/tasks/{task_id}/assign", response_model=DaoWithStatus)
def assign_task(
    dao_id: str,
    task_id: int,
    body: TaskAssignInput,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    dao = mutate_dao(store, dao_id, lambda d: rules.assign_task(d, task_id, body.member_id, user))
    logger.info("[tasks] tâche %d de %s assignée à %s", task_id, dao.numero_liste, body.member_id)
    return with_status(dao)


@router.delete("/{dao_id}/tasks/{task_id}/assign", response_model=DaoWithStatus)
def unassign_task(
    dao_id: str,
    task_id: int,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    dao = mutate_dao(store, dao_id, lambda d: rules.unassign_task(d, task_id, user))
    return with_status(dao)


@router.delete("/{dao_id}/tasks/{task_id}", response_model=DaoWithStatus)
def delete_task(
    dao_id: str,
    task_id: int,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    dao = mutate_dao(store, dao_id, lambda d: rules.delete_task(d, task_id, user))
    removed = comments_service.delete_for_task(store, dao_id, task_id)
    logger.info("[tasks] tâche %d supprimée de %s par %s (%d commentaires)",
                task_id, dao.numero_liste, user.id, removed)
    return with_status(dao)
