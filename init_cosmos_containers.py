#!/usr/bin/env python3
"""
Script d'initialisation des conteneurs Cosmos DB.
À exécuter une seule fois pour créer les conteneurs manquants.

Usage:
    python init_cosmos_containers.py
"""

from azure.cosmos import CosmosClient, PartitionKey, exceptions
from app.config import settings

def init_containers():
    """Crée la base et les conteneurs daos / users / comments / numeros s'ils n'existent pas."""

    print(f"Connexion à Cosmos DB : {settings.COSMOS_URI}")
    client = CosmosClient(settings.COSMOS_URI, credential=settings.COSMOS_KEY)

    database_name = settings.COSMOS_DB_NAME
    print(f"Base de données : {database_name}")

    try:
        database = client.create_database_if_not_exists(id=database_name)
        print(f"✅ Base de données '{database_name}' OK")
    except exceptions.CosmosHttpResponseError as e:
        print(f"❌ Erreur création base de données : {e}")
        return

    # Clé de partition /id partout : chaque document est lu et remplacé
    # individuellement (etag par document)
    containers = [
        {"id": settings.COSMOS_CONTAINER_DAOS, "description": "Dossiers d'appel d'offres"},
        {"id": settings.COSMOS_CONTAINER_USERS, "description": "Utilisateurs de l'application"},
        {"id": settings.COSMOS_CONTAINER_COMMENTS, "description": "Commentaires sur les tâches"},
        {"id": settings.COSMOS_CONTAINER_NUMEROS, "description": "Réservations des numéros de liste (unicité)"},
    ]

    for container_def in containers:
        container_id = container_def["id"]
        try:
            database.create_container_if_not_exists(
                id=container_id,
                partition_key=PartitionKey(path="/id"),
                offer_throughput=400  # 400 RU/s (minimum)
            )
            print(f"✅ Conteneur '{container_id}' OK ({container_def['description']})")
        except exceptions.CosmosHttpResponseError as e:
            print(f"❌ Erreur création conteneur '{container_id}' : {e}")

    print("\n✅ Initialisation terminée !")

if __name__ == "__main__":
    try:
        init_containers()
    except Exception as e:
        print(f"\n❌ Erreur fatale : {e}")
        import traceback
        traceback.print_exc()
