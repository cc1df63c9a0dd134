# app/services/daos_service.py
"""
Accès aux DAO dans le stockage.

Les règles métier (Core/tasks.py, Core/dossiers.py) sont des fonctions pures
sur un Dao chargé ; mutate_dao() les applique en lecture-modification-écriture
avec contrôle de l'etag du document : deux mises à jour concurrentes du même
dossier ne s'écrasent pas silencieusement, la seconde reçoit un 409.

L'unicité du numéro de liste repose sur le conteneur "numeros" : un document
par numéro attribué, dont la création échoue (Conflict) si le numéro est déjà
pris. Le contrôle et la réservation sont donc une seule écriture atomique.
"""
import hashlib
import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from app.models.auth import AppUser
from app.models.dao import Dao, DaoCreateInput, DaoUpdateInput
from app.services.store import DocumentStore
from Core.dossiers import apply_dao_update, build_dao, new_dao_id
from Core.errors import Conflict, NotFound
from Core.numbering import next_dao_number
from Core.policy import Operation, ensure_allowed

logger = logging.getLogger(__name__)

DAOS = "daos"
COMMENTS = "comments"
NUMEROS = "numeros"

GENERATE_ATTEMPTS = 5


def _load(doc) -> Dao:
    return Dao.model_validate(doc)


def list_daos(store: DocumentStore) -> List[Dao]:
    """Tous les DAO, du plus récemment modifié au plus ancien."""
    daos = [_load(d) for d in store.find_all(DAOS)]
    return sorted(daos, key=lambda d: d.updated_at, reverse=True)


def get_dao(store: DocumentStore, dao_id: str) -> Dao:
    doc = store.find_by_id(DAOS, dao_id)
    if doc is None:
        raise NotFound("DAO introuvable.", code="DAO_NOT_FOUND")
    return _load(doc)


def _numero_key(numero: str) -> str:
    # un id Cosmos ne peut contenir ni "/" ni "#" : le numéro saisi est haché
    return "numero_" + hashlib.sha1(numero.encode("utf-8")).hexdigest()


def next_number(store: DocumentStore, year: Optional[int] = None) -> str:
    """Prochain numéro libre, en comptant aussi les numéros réservés mais pas encore écrits."""
    year = year or date.today().year
    numeros = [d.get("numeroListe") for d in store.find_all(DAOS)]
    numeros += [d.get("numeroListe") for d in store.find_all(NUMEROS)]
    return next_dao_number(numeros, year)


def _reserve_numero(store: DocumentStore, numero: str, dao_id: str) -> bool:
    """
    Réserve le numéro pour dao_id. Renvoie False si ce DAO le détient déjà.
    Conflict (DUPLICATE_NUMERO) si un autre DAO l'utilise.
    """
    duplicate = Conflict(f"Le numéro de liste {numero} existe déjà.", code="DUPLICATE_NUMERO")
    # DAO enregistré avant l'existence des réservations
    existing = store.find_one(DAOS, numeroListe=numero)
    if existing and existing["id"] != dao_id:
        raise duplicate

    key = _numero_key(numero)
    try:
        store.insert(NUMEROS, {"id": key, "numeroListe": numero, "daoId": dao_id})
    except Conflict as e:
        holder = store.find_by_id(NUMEROS, key)
        if holder is not None and holder.get("daoId") == dao_id:
            return False
        raise duplicate from e
    return True


def _release_numero(store: DocumentStore, numero: str, dao_id: str) -> None:
    key = _numero_key(numero)
    holder = store.find_by_id(NUMEROS, key)
    if holder is not None and holder.get("daoId") == dao_id:
        store.delete(NUMEROS, key)


def _reserve_next_number(store: DocumentStore, year: int, dao_id: str) -> str:
    for _ in range(GENERATE_ATTEMPTS):
        numero = next_number(store, year)
        try:
            _reserve_numero(store, numero, dao_id)
            return numero
        except Conflict:
            logger.info("[daos] %s attribué entre-temps, nouvel essai", numero)
    raise Conflict("Impossible d'attribuer un numéro de liste, réessayez.", code="DUPLICATE_NUMERO")


def create_dao(
    store: DocumentStore,
    payload: DaoCreateInput,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Dao:
    """Crée un DAO ; le numéro de liste est généré quand il n'est pas fourni."""
    ensure_allowed(actor, Operation.CREATE_DAO)
    now = now or datetime.now(timezone.utc)
    dao_id = new_dao_id()

    if payload.numero_liste:
        numero = payload.numero_liste
        _reserve_numero(store, numero, dao_id)
    else:
        numero = _reserve_next_number(store, now.year, dao_id)

    try:
        dao = build_dao(payload, numero, actor, now, dao_id=dao_id)
        saved = _load(store.insert(DAOS, dao.to_doc()))
    except Exception:
        _release_numero(store, numero, dao_id)
        raise
    logger.info("[daos] %s créé par %s (%d tâches)", saved.numero_liste, actor.id, len(saved.tasks))
    return saved


def mutate_dao(
    store: DocumentStore,
    dao_id: str,
    fn: Callable[[Dao], Dao],
) -> Dao:
    """
    Lit le DAO et son etag, applique fn (règle pure) puis réécrit le document
    à condition qu'il n'ait pas changé entre-temps (Conflict sinon).
    Si fn lève une erreur, rien n'est écrit.
    """
    doc = store.find_by_id(DAOS, dao_id)
    if doc is None:
        raise NotFound("DAO introuvable.", code="DAO_NOT_FOUND")
    etag = doc.get("_etag")
    updated = fn(_load(doc))
    return _load(store.replace(DAOS, updated.to_doc(), etag=etag))


def update_dao(
    store: DocumentStore,
    dao_id: str,
    patch: DaoUpdateInput,
    actor: AppUser,
    now: Optional[datetime] = None,
) -> Dao:
    """Un changement de numéro réserve le nouveau avant l'écriture et libère l'ancien après."""
    numero = patch.numero_liste
    reserved = bool(numero) and _reserve_numero(store, numero, dao_id)
    previous: List[str] = []

    def apply(dao: Dao) -> Dao:
        previous.append(dao.numero_liste)
        return apply_dao_update(dao, patch, actor, now)

    try:
        saved = mutate_dao(store, dao_id, apply)
    except Exception:
        if reserved:
            _release_numero(store, numero, dao_id)
        raise
    if reserved and previous and previous[0] != numero:
        _release_numero(store, previous[0], dao_id)
    logger.info("[daos] %s modifié par %s : %s", saved.numero_liste, actor.id, sorted(patch.model_fields_set))
    return saved


def delete_dao(store: DocumentStore, dao_id: str, actor: AppUser) -> None:
    """Supprime le DAO, ses commentaires et la réservation de son numéro."""
    ensure_allowed(actor, Operation.DELETE_DAO)
    dao = get_dao(store, dao_id)
    store.delete(DAOS, dao_id)
    _release_numero(store, dao.numero_liste, dao_id)

    comments = store.find_many(COMMENTS, daoId=dao_id)
    for c in comments:
        store.delete(COMMENTS, c["id"])
    logger.info("[daos] %s supprimé par %s (%d commentaires)", dao.numero_liste, actor.id, len(comments))
