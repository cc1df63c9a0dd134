"""
Suivi DAO : fixtures partagées.

Run:  pytest tests/ -v
"""
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.models.auth import AppUser
from app.models.dao import Dao, Task, TeamMember
from app.services.store import MemoryStore

NOW = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
TODAY = date(2025, 3, 1)

ADMIN_EMAIL = "admin@2snd.fr"
ADMIN_PASSWORD = "admin123"
USER_EMAIL = "marie.dubois@2snd.fr"
OTHER_USER_EMAIL = "pierre.martin@2snd.fr"
DEFAULT_PASSWORD = "changeme123"


@pytest.fixture(autouse=True)
def _fast_bcrypt(monkeypatch):
    """Coût bcrypt minimal : les hash restent valides, les tests restent rapides."""
    monkeypatch.setattr("Core.security.BCRYPT_ROUNDS", 4)


# ---------------------------------------------------------------------------
# Domaine
# ---------------------------------------------------------------------------

@pytest.fixture
def admin():
    return AppUser(id="user_admin", email=ADMIN_EMAIL, name="Admin User", role="admin")


@pytest.fixture
def user():
    return AppUser(id="user_marie", email=USER_EMAIL, name="Marie Dubois", role="user")


@pytest.fixture
def team():
    return [
        TeamMember(id="m1", name="Alice Chef", role="chef_equipe"),
        TeamMember(id="m2", name="Bob Membre", role="membre_equipe", email="bob@2snd.fr"),
    ]


@pytest.fixture
def dao(team):
    return Dao(
        id="dao_1",
        numero_liste="DAO-2025-001",
        objet_dossier="Construction d'un centre de santé",
        reference="AO-2025-17",
        autorite_contractante="Mairie de Cotonou",
        date_depot=date(2025, 3, 20),
        equipe=team,
        tasks=[
            Task(id=1, name="Résumé sommaire", progress=100, is_applicable=True),
            Task(id=2, name="Chiffrage", progress=40, is_applicable=True, assigned_to="m2"),
            Task(id=3, name="Caution", progress=None, is_applicable=False),
        ],
        created_at=NOW,
        updated_at=NOW,
    )


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    return Settings(
        DEBUG=True,
        LOG_LEVEL="WARNING",
        JWT_SECRET="test-secret-" + "x" * 40,
        STORAGE_BACKEND="memory",
        SEED_USERS=True,
        SEED_ADMIN_EMAIL=ADMIN_EMAIL,
        SEED_ADMIN_PASSWORD=ADMIN_PASSWORD,
        DEFAULT_USER_PASSWORD=DEFAULT_PASSWORD,
        SMTP_HOST="",
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client(settings, store):
    app = create_app(settings=settings, store=store)
    with TestClient(app) as c:
        yield c


def login(client, email, password):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


@pytest.fixture
def admin_headers(client):
    return {"Authorization": f"Bearer {login(client, ADMIN_EMAIL, ADMIN_PASSWORD)}"}


@pytest.fixture
def user_headers(client):
    return {"Authorization": f"Bearer {login(client, USER_EMAIL, DEFAULT_PASSWORD)}"}


@pytest.fixture
def other_user_headers(client):
    return {"Authorization": f"Bearer {login(client, OTHER_USER_EMAIL, DEFAULT_PASSWORD)}"}


@pytest.fixture
def dao_payload():
    return {
        "objetDossier": "Réhabilitation de l'école primaire",
        "reference": "AO-2025-042",
        "autoriteContractante": "Ministère de l'Éducation",
        "dateDepot": "2025-12-15",
        "equipe": [
            {"id": "m1", "name": "Alice Chef", "role": "chef_equipe"},
            {"id": "m2", "name": "Bob Membre", "role": "membre_equipe"},
        ],
    }


@pytest.fixture
def created_dao(client, admin_headers, dao_payload):
    resp = client.post("/api/dao", json=dao_payload, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()
