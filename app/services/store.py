# app/services/store.py
"""
Passerelle de persistance : documents JSON rangés par conteneur
("daos", "users", "comments", "numeros").

Deux implémentations :
- MemoryStore  : dictionnaires en mémoire (dev / tests), créée au démarrage de l'app
- CosmosStore  : Azure Cosmos DB (voir app/services/cosmos_store.py)

Chaque document porte un "_etag" renouvelé à chaque écriture ; replace()
l'utilise comme condition (compare-and-swap par document).
"""
import copy
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from Core.errors import Conflict, NotFound

CONTAINERS = ("daos", "users", "comments", "numeros")

Doc = Dict[str, Any]


class DocumentStore(ABC):

    @abstractmethod
    def find_all(self, container: str) -> List[Doc]:
        ...

    @abstractmethod
    def find_by_id(self, container: str, doc_id: str) -> Optional[Doc]:
        ...

    @abstractmethod
    def find_many(self, container: str, **equals: Any) -> List[Doc]:
        """Documents dont les champs valent exactement les valeurs données."""

    def find_one(self, container: str, **equals: Any) -> Optional[Doc]:
        items = self.find_many(container, **equals)
        return items[0] if items else None

    @abstractmethod
    def insert(self, container: str, doc: Doc) -> Doc:
        ...

    @abstractmethod
    def replace(self, container: str, doc: Doc, etag: Optional[str] = None) -> Doc:
        """Remplace le document ; si etag est fourni, échoue (Conflict) s'il a changé entre-temps."""

    def update(self, container: str, doc_id: str, patch: Doc) -> Doc:
        current = self.find_by_id(container, doc_id)
        if current is None:
            raise NotFound(f"Document {doc_id} introuvable.")
        current.update(patch)
        return self.replace(container, current, etag=current.get("_etag"))

    @abstractmethod
    def delete(self, container: str, doc_id: str) -> None:
        ...

    def close(self) -> None:
        pass


class MemoryStore(DocumentStore):
    """Stockage en mémoire, thread-safe, isolé par instance."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Doc]] = {name: {} for name in CONTAINERS}

    def _bucket(self, container: str) -> Dict[str, Doc]:
        if container not in self._data:
            raise KeyError(f"Conteneur inconnu : {container}")
        return self._data[container]

    def find_all(self, container: str) -> List[Doc]:
        with self._lock:
            return [copy.deepcopy(d) for d in self._bucket(container).values()]

    def find_by_id(self, container: str, doc_id: str) -> Optional[Doc]:
        with self._lock:
            doc = self._bucket(container).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def find_many(self, container: str, **equals: Any) -> List[Doc]:
        with self._lock:
            return [
                copy.deepcopy(d) for d in self._bucket(container).values()
                if all(d.get(k) == v for k, v in equals.items())
            ]

    def insert(self, container: str, doc: Doc) -> Doc:
        with self._lock:
            bucket = self._bucket(container)
            if doc["id"] in bucket:
                raise Conflict(f"Document {doc['id']} déjà existant.")
            stored = copy.deepcopy(doc)
            stored["_etag"] = uuid.uuid4().hex
            bucket[doc["id"]] = stored
            return copy.deepcopy(stored)

    def replace(self, container: str, doc: Doc, etag: Optional[str] = None) -> Doc:
        with self._lock:
            bucket = self._bucket(container)
            current = bucket.get(doc["id"])
            if current is None:
                raise NotFound(f"Document {doc['id']} introuvable.")
            if etag is not None and current.get("_etag") != etag:
                raise Conflict(
                    "Le document a été modifié par une autre requête.",
                    code="CONCURRENT_UPDATE",
                )
            stored = copy.deepcopy(doc)
            stored["_etag"] = uuid.uuid4().hex
            bucket[doc["id"]] = stored
            return copy.deepcopy(stored)

    def delete(self, container: str, doc_id: str) -> None:
        with self._lock:
            bucket = self._bucket(container)
            if doc_id not in bucket:
                raise NotFound(f"Document {doc_id} introuvable.")
            del bucket[doc_id]
