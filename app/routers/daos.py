# app/routers/daos.py
"""
Endpoints des dossiers (DAO).
- Tous les utilisateurs connectés : liste, détail, modification, exports
- Admins : création, suppression
"""
import io
from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from app.auth import get_current_user
from app.deps import get_store
from app.models.auth import AppUser
from app.models.base import CamelModel
from app.models.dao import DaoCreateInput, DaoUpdateInput, DaoWithStatus
from app.services import daos_service, export_service
from app.services.store import DocumentStore
from Core.filters import DaoFilters, Statut, filter_daos
from Core.policy import Operation, ensure_allowed
from Core.progress import summarize_daos, with_status

router = APIRouter()

ExportFormat = Literal["csv", "docx"]


class NextNumberResponse(CamelModel):
    numero_liste: str


class MessageResponse(CamelModel):
    message: str


def _export_response(content: bytes, fmt: ExportFormat, basename: str) -> StreamingResponse:
    if fmt == "csv":
        media_type, filename = export_service.CSV_MEDIA_TYPE, f"{basename}.csv"
    else:
        media_type, filename = export_service.DOCX_MEDIA_TYPE, f"{basename}.docx"
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("", response_model=List[DaoWithStatus])
def list_daos(
    search: Optional[str] = Query(None, max_length=200),
    date_start: Optional[date] = Query(None, alias="dateStart"),
    date_end: Optional[date] = Query(None, alias="dateEnd"),
    autorite_contractante: Optional[str] = Query(None, alias="autoriteContractante"),
    statut: Optional[Statut] = None,
    equipe: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    """Liste enrichie de la progression et du statut, filtrable comme le tableau de bord."""
    ensure_allowed(user, Operation.READ_DAO)
    rows, _ = summarize_daos(daos_service.list_daos(store))
    filters = DaoFilters(
        search=search,
        date_start=date_start,
        date_end=date_end,
        autorite_contractante=autorite_contractante,
        statut=statut,
        equipe=equipe,
    )
    return filter_daos(rows, filters)


@router.get("/next-number", response_model=NextNumberResponse)
def next_number(
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    ensure_allowed(user, Operation.READ_DAO)
    return NextNumberResponse(numero_liste=daos_service.next_number(store))


@router.get("/export")
def export_daos(
    fmt: ExportFormat = Query("csv", alias="format"),
    include_completed: bool = Query(True, alias="includeCompleted"),
    include_in_progress: bool = Query(True, alias="includeInProgress"),
    include_at_risk: bool = Query(True, alias="includeAtRisk"),
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    ensure_allowed(user, Operation.EXPORT)
    options = export_service.ExportOptions(
        include_completed=include_completed,
        include_in_progress=include_in_progress,
        include_at_risk=include_at_risk,
    )
    rows, stats = export_service.select_daos(daos_service.list_daos(store), options)
    if fmt == "csv":
        content = export_service.export_csv(rows)
    else:
        content = export_service.export_docx(rows, stats)
    return _export_response(content, fmt, f"export_daos_{datetime.now():%Y%m%d}")


@router.get("/{dao_id}", response_model=DaoWithStatus)
def get_dao(
    dao_id: str,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    ensure_allowed(user, Operation.READ_DAO)
    return with_status(daos_service.get_dao(store, dao_id))


@router.get("/{dao_id}/export")
def export_dao(
    dao_id: str,
    fmt: ExportFormat = Query("docx", alias="format"),
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    ensure_allowed(user, Operation.EXPORT)
    dao = with_status(daos_service.get_dao(store, dao_id))
    if fmt == "csv":
        content = export_service.export_dao_csv(dao)
    else:
        content = export_service.export_dao_docx(dao)
    return _export_response(content, fmt, dao.numero_liste)


@router.post("", response_model=DaoWithStatus, status_code=status.HTTP_201_CREATED)
def create_dao(
    body: DaoCreateInput,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    return with_status(daos_service.create_dao(store, body, user))


@router.put("/{dao_id}", response_model=DaoWithStatus)
def update_dao(
    dao_id: str,
    body: DaoUpdateInput,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    return with_status(daos_service.update_dao(store, dao_id, body, user))


@router.delete("/{dao_id}", response_model=MessageResponse)
def delete_dao(
    dao_id: str,
    store: DocumentStore = Depends(get_store),
    user: AppUser = Depends(get_current_user),
):
    daos_service.delete_dao(store, dao_id, user)
    return MessageResponse(message="DAO supprimé avec succès.")
