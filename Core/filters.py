# Core/filters.py
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel

from app.models.dao import DaoWithStatus

Statut = Literal["en_cours", "termine", "a_risque"]


class DaoFilters(BaseModel):
    """Critères de la liste des DAO (barre de recherche + filtres du tableau de bord)."""
    search: Optional[str] = None
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    autorite_contractante: Optional[str] = None
    statut: Optional[Statut] = None
    equipe: Optional[str] = None


def _matches_search(dao: DaoWithStatus, needle: str) -> bool:
    fields = [
        dao.numero_liste,
        dao.objet_dossier,
        dao.reference,
        dao.autorite_contractante,
        *[m.name for m in dao.equipe],
    ]
    return any(needle in (f or "").lower() for f in fields)


def filter_daos(daos: List[DaoWithStatus], filters: DaoFilters) -> List[DaoWithStatus]:
    out = daos

    needle = (filters.search or "").strip().lower()
    if needle:
        out = [d for d in out if _matches_search(d, needle)]

    # Plage de dates appliquée seulement si les deux bornes sont fournies
    if filters.date_start and filters.date_end:
        out = [d for d in out if filters.date_start <= d.date_depot <= filters.date_end]

    if filters.autorite_contractante:
        out = [d for d in out if d.autorite_contractante == filters.autorite_contractante]

    if filters.statut == "en_cours":
        out = [d for d in out if d.progress < 100]
    elif filters.statut == "termine":
        out = [d for d in out if d.progress >= 100]
    elif filters.statut == "a_risque":
        out = [d for d in out if d.status == "urgent"]

    if filters.equipe:
        out = [d for d in out if any(m.name == filters.equipe for m in d.equipe)]

    return out
