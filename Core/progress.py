# Core/progress.py
"""
Calcul de l'avancement et du statut "feu tricolore" d'un DAO.

Fonctions pures : la date du jour est passée en paramètre (par défaut
date.today()) pour rester testable.

Règles de statut, par ordre de priorité :
1) avancement = 100 %                      -> completed
2) date de dépôt dépassée (jours < 0)      -> urgent
3) dépôt dans 5 jours ou plus              -> safe
4) dépôt dans 3 jours ou moins             -> urgent
5) sinon (exactement 4 jours)              -> default
"""
import math
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from app.models.dao import Dao, DaoStatus, DaoWithStatus, Task

SAFE_DAYS = 5
URGENT_DAYS = 3

STATUS_LABELS: Dict[str, str] = {
    "completed": "Terminé",
    "urgent": "À risque",
    "safe": "En cours (sûr)",
    "default": "En cours",
}

# Valeur retenue quand aucune tâche n'est applicable (voir DESIGN.md).
EMPTY_PROGRESS = 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_dao_progress(tasks: Iterable[Task]) -> int:
    """Moyenne arrondie de l'avancement des seules tâches applicables (null = 0)."""
    values = [t.progress or 0 for t in tasks if t.is_applicable]
    if not values:
        return EMPTY_PROGRESS
    avg = _round_half_up(sum(values) / len(values))
    return max(0, min(100, avg))


def days_until(date_depot: date, today: Optional[date] = None) -> int:
    """Nombre de jours calendaires entre aujourd'hui et la date de dépôt."""
    today = today or date.today()
    return (date_depot - today).days


def calculate_dao_status(
    date_depot: date,
    progress: int,
    today: Optional[date] = None,
) -> DaoStatus:
    if progress == 100:
        return "completed"

    days_diff = days_until(date_depot, today)
    if days_diff < 0:
        return "urgent"
    if days_diff >= SAFE_DAYS:
        return "safe"
    if days_diff <= URGENT_DAYS:
        return "urgent"
    return "default"


def with_status(dao: Dao, today: Optional[date] = None) -> DaoWithStatus:
    progress = calculate_dao_progress(dao.tasks)
    status = calculate_dao_status(dao.date_depot, progress, today)
    return DaoWithStatus(**dao.model_dump(), progress=progress, status=status)


def summarize_daos(
    daos: Iterable[Dao],
    today: Optional[date] = None,
) -> Tuple[List[DaoWithStatus], Dict[str, int]]:
    """
    Enrichit chaque DAO et compte les dossiers par catégorie d'export :
    total / completed / in_progress (safe + default) / at_risk (urgent).
    """
    rows = [with_status(d, today) for d in daos]
    stats = {
        "total": len(rows),
        "completed": sum(1 for r in rows if r.status == "completed"),
        "in_progress": sum(1 for r in rows if r.status in ("safe", "default")),
        "at_risk": sum(1 for r in rows if r.status == "urgent"),
    }
    return rows, stats
