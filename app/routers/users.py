# app/routers/users.py
"""Gestion des comptes (admin uniquement)."""
from typing import List

from fastapi import APIRouter, Depends, Query, status

from app.auth import require_admin
from app.config import Settings
from app.deps import get_settings, get_store
from app.models.auth import AppUser, NewUser, RoleInput, UpdateUserInput, User
from app.services.store import DocumentStore
from app.services import users_service

router = APIRouter()


@router.get("/users", response_model=List[User])
def admin_list_users(
    active_only: bool = Query(False, alias="activeOnly"),
    store: DocumentStore = Depends(get_store),
    _: AppUser = Depends(require_admin),
):
    return users_service.list_users(store, active_only=active_only)


@router.get("/users/{user_id}", response_model=User)
def admin_get_user(
    user_id: str,
    store: DocumentStore = Depends(get_store),
    _: AppUser = Depends(require_admin),
):
    return users_service.get_user(store, user_id)


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
def admin_create_user(
    body: NewUser,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    _: AppUser = Depends(require_admin),
):
    return users_service.create_user(store, body, settings.DEFAULT_USER_PASSWORD)


@router.patch("/users/{user_id}", response_model=User)
def admin_update_user(
    user_id: str,
    body: UpdateUserInput,
    store: DocumentStore = Depends(get_store),
    admin: AppUser = Depends(require_admin),
):
    return users_service.update_user(store, user_id, body, admin)


@router.put("/users/{user_id}/role", response_model=User)
def admin_set_role(
    user_id: str,
    body: RoleInput,
    store: DocumentStore = Depends(get_store),
    admin: AppUser = Depends(require_admin),
):
    return users_service.set_role(store, user_id, body.role, admin)


@router.delete("/users/{user_id}", response_model=User)
def admin_deactivate_user(
    user_id: str,
    store: DocumentStore = Depends(get_store),
    admin: AppUser = Depends(require_admin),
):
    """Désactive le compte (jamais de suppression physique)."""
    return users_service.deactivate_user(store, user_id, admin)


@router.put("/users/{user_id}/activate", response_model=User)
def admin_activate_user(
    user_id: str,
    store: DocumentStore = Depends(get_store),
    admin: AppUser = Depends(require_admin),
):
    return users_service.activate_user(store, user_id, admin)
