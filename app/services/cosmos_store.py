# app/services/cosmos_store.py
import logging
from typing import Any, Dict, List, Optional

from azure.core import MatchConditions
from azure.cosmos import CosmosClient, exceptions

from app.config import Settings
from app.services.store import Doc, DocumentStore
from Core.errors import Conflict, NotFound, StorageError

logger = logging.getLogger(__name__)


class CosmosStore(DocumentStore):
    """
    Stockage Azure Cosmos DB : un conteneur par entité, clé de partition /id.
    Le remplacement d'un document utilise son _etag (IfNotModified).
    """

    def __init__(self, settings: Settings):
        if not (settings.COSMOS_URI and settings.COSMOS_KEY):
            raise RuntimeError("COSMOS_URI ou COSMOS_KEY non configuré.")
        self._client = CosmosClient(settings.COSMOS_URI, credential=settings.COSMOS_KEY)
        self._db = self._client.get_database_client(settings.COSMOS_DB_NAME)
        self._names = {
            "daos": settings.COSMOS_CONTAINER_DAOS,
            "users": settings.COSMOS_CONTAINER_USERS,
            "comments": settings.COSMOS_CONTAINER_COMMENTS,
            "numeros": settings.COSMOS_CONTAINER_NUMEROS,
        }

    def _container(self, name: str):
        return self._db.get_container_client(self._names[name])

    def find_all(self, container: str) -> List[Doc]:
        try:
            return list(self._container(container).query_items(
                query="SELECT * FROM c",
                enable_cross_partition_query=True,
            ))
        except exceptions.CosmosHttpResponseError as e:
            logger.exception("[cosmos] lecture de %s impossible", container)
            raise StorageError(str(e)) from e

    def find_by_id(self, container: str, doc_id: str) -> Optional[Doc]:
        try:
            return self._container(container).read_item(item=doc_id, partition_key=doc_id)
        except exceptions.CosmosResourceNotFoundError:
            return None
        except exceptions.CosmosHttpResponseError as e:
            logger.exception("[cosmos] lecture de %s/%s impossible", container, doc_id)
            raise StorageError(str(e)) from e

    def find_many(self, container: str, **equals: Any) -> List[Doc]:
        clauses = []
        parameters: List[Dict[str, Any]] = []
        for i, (field, value) in enumerate(equals.items()):
            clauses.append(f"c.{field} = @p{i}")
            parameters.append({"name": f"@p{i}", "value": value})
        query = "SELECT * FROM c"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        try:
            return list(self._container(container).query_items(
                query=query,
                parameters=parameters,
                enable_cross_partition_query=True,
            ))
        except exceptions.CosmosHttpResponseError as e:
            logger.exception("[cosmos] requête sur %s impossible", container)
            raise StorageError(str(e)) from e

    def insert(self, container: str, doc: Doc) -> Doc:
        try:
            return self._container(container).create_item(body=doc)
        except exceptions.CosmosResourceExistsError as e:
            raise Conflict(f"Document {doc['id']} déjà existant.") from e
        except exceptions.CosmosHttpResponseError as e:
            logger.exception("[cosmos] création dans %s impossible", container)
            raise StorageError(str(e)) from e

    def replace(self, container: str, doc: Doc, etag: Optional[str] = None) -> Doc:
        kwargs: Dict[str, Any] = {}
        if etag:
            kwargs = {"etag": etag, "match_condition": MatchConditions.IfNotModified}
        try:
            return self._container(container).replace_item(item=doc["id"], body=doc, **kwargs)
        except exceptions.CosmosResourceNotFoundError as e:
            raise NotFound(f"Document {doc['id']} introuvable.") from e
        except exceptions.CosmosAccessConditionFailedError as e:
            raise Conflict(
                "Le document a été modifié par une autre requête.",
                code="CONCURRENT_UPDATE",
            ) from e
        except exceptions.CosmosHttpResponseError as e:
            logger.exception("[cosmos] remplacement de %s/%s impossible", container, doc["id"])
            raise StorageError(str(e)) from e

    def delete(self, container: str, doc_id: str) -> None:
        try:
            self._container(container).delete_item(item=doc_id, partition_key=doc_id)
        except exceptions.CosmosResourceNotFoundError as e:
            raise NotFound(f"Document {doc_id} introuvable.") from e
        except exceptions.CosmosHttpResponseError as e:
            logger.exception("[cosmos] suppression de %s/%s impossible", container, doc_id)
            raise StorageError(str(e)) from e

    def close(self) -> None:
        self._client.close()
