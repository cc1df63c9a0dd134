import csv
import io
from datetime import date

import docx

from app.models.dao import Dao
from app.services.export_service import (
    CSV_HEADERS,
    ExportOptions,
    export_csv,
    export_dao_csv,
    export_dao_docx,
    export_docx,
    select_daos,
)
from Core.progress import with_status

TODAY = date(2025, 3, 1)


def _parse_csv(content: bytes):
    assert content.startswith(b"\xef\xbb\xbf")
    return list(csv.reader(io.StringIO(content.decode("utf-8-sig")), delimiter=";"))


def _docx_text(content: bytes) -> str:
    doc = docx.Document(io.BytesIO(content))
    parts = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            parts.extend(cell.text for cell in row.cells)
    return "\n".join(parts)


def _portfolio(dao: Dao):
    done = dao.model_copy(deep=True, update={"id": "dao_2", "numero_liste": "DAO-2025-002"})
    for t in done.tasks:
        t.progress = 100
    late = dao.model_copy(deep=True, update={"id": "dao_3", "numero_liste": "DAO-2025-003", "date_depot": date(2025, 2, 1)})
    return [dao, done, late]


class TestSelection:
    def test_all_categories(self, dao):
        rows, stats = select_daos(_portfolio(dao), ExportOptions(), TODAY)
        assert len(rows) == 3
        assert stats == {"total": 3, "completed": 1, "in_progress": 1, "at_risk": 1}

    def test_excluding_categories_recomputes_stats(self, dao):
        options = ExportOptions(include_completed=False, include_at_risk=False)
        rows, stats = select_daos(_portfolio(dao), options, TODAY)
        assert [r.id for r in rows] == ["dao_1"]
        assert stats["total"] == 1
        assert stats["completed"] == 0


class TestCsv:
    def test_global_csv(self, dao):
        rows, _ = select_daos(_portfolio(dao), ExportOptions(), TODAY)
        lines = _parse_csv(export_csv(rows))
        assert lines[0] == CSV_HEADERS
        assert lines[1][0] == "DAO-2025-001"
        assert lines[1][4] == "20/03/2025"
        assert lines[1][5] == "Alice Chef"
        assert lines[1][7] == "70"

    def test_dao_csv_lists_tasks(self, dao):
        lines = _parse_csv(export_dao_csv(with_status(dao, TODAY)))
        assert lines[2] == []
        tasks = lines[4:]
        assert [t[1] for t in tasks] == ["Résumé sommaire", "Chiffrage", "Caution"]
        assert tasks[1][4] == "Bob Membre"
        assert tasks[2][2] == "Non"
        assert tasks[2][3] == ""


class TestDocx:
    def test_global_report(self, dao):
        rows, stats = select_daos(_portfolio(dao), ExportOptions(), TODAY)
        text = _docx_text(export_docx(rows, stats))
        assert "Rapport de suivi des DAO" in text
        assert "Statistiques" in text
        assert "DAO-2025-003" in text

    def test_dao_sheet(self, dao):
        text = _docx_text(export_dao_docx(with_status(dao, TODAY)))
        assert "Fiche DAO DAO-2025-001" in text
        assert "Chiffrage" in text
        assert "N/A" in text


class TestExportEndpoints:
    def test_csv_download(self, client, user_headers, created_dao):
        resp = client.get("/api/dao/export", params={"format": "csv"}, headers=user_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "export_daos_" in resp.headers["content-disposition"]
        lines = _parse_csv(resp.content)
        assert lines[1][0] == created_dao["numeroListe"]

    def test_category_filter(self, client, user_headers, admin_headers, dao_payload, created_dao):
        future = {**dao_payload, "dateDepot": "2099-01-15"}
        client.post("/api/dao", json=future, headers=admin_headers)
        # created_dao a une date de dépôt passée : il est classé à risque
        resp = client.get(
            "/api/dao/export",
            params={"format": "csv", "includeAtRisk": "false"},
            headers=user_headers,
        )
        lines = _parse_csv(resp.content)
        assert len(lines) == 2
        assert lines[1][0] != created_dao["numeroListe"]

    def test_docx_download(self, client, user_headers, created_dao):
        resp = client.get("/api/dao/export", params={"format": "docx"}, headers=user_headers)
        assert resp.status_code == 200
        assert "Rapport de suivi des DAO" in _docx_text(resp.content)

    def test_single_dao_docx(self, client, user_headers, created_dao):
        resp = client.get(f"/api/dao/{created_dao['id']}/export", headers=user_headers)
        assert resp.status_code == 200
        assert f"{created_dao['numeroListe']}.docx" in resp.headers["content-disposition"]
        assert "Tâches" in _docx_text(resp.content)

    def test_unknown_format(self, client, user_headers):
        resp = client.get("/api/dao/export", params={"format": "pdf"}, headers=user_headers)
        assert resp.status_code == 400
