# app/services/export_service.py
"""
Exports des DAO (CSV et Word).

- CSV : séparateur ";" et BOM UTF-8 pour une ouverture directe dans Excel
- DOCX : python-docx, statistiques puis une section par dossier ;
  pour un dossier seul, le tableau des tâches est ajouté
"""
import csv
import io
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt
from pydantic import BaseModel

from app.models.dao import Dao, DaoWithStatus
from Core.progress import STATUS_LABELS, summarize_daos

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

CSV_HEADERS = [
    "Numéro de liste",
    "Objet du dossier",
    "Référence",
    "Autorité contractante",
    "Date de dépôt",
    "Chef d'équipe",
    "Équipe",
    "Progression (%)",
    "Statut",
]


class ExportOptions(BaseModel):
    """Catégories de dossiers à inclure dans l'export global."""
    include_completed: bool = True
    include_in_progress: bool = True
    include_at_risk: bool = True

    def accepts(self, dao: DaoWithStatus) -> bool:
        if dao.status == "completed":
            return self.include_completed
        if dao.status == "urgent":
            return self.include_at_risk
        return self.include_in_progress


def _fmt_date(d: date) -> str:
    return d.strftime("%d/%m/%Y")


def _chef(dao: Dao) -> str:
    chef = dao.chef_equipe()
    return chef.name if chef else ""


def _member_name(dao: Dao, member_id: Optional[str]) -> str:
    if not member_id:
        return ""
    return next((m.name for m in dao.equipe if m.id == member_id), member_id)


def select_daos(
    daos: List[Dao],
    options: ExportOptions,
    today: Optional[date] = None,
) -> Tuple[List[DaoWithStatus], Dict[str, int]]:
    """Enrichit, filtre par catégorie et recalcule les statistiques sur la sélection."""
    rows, _ = summarize_daos(daos, today)
    selected = [r for r in rows if options.accepts(r)]
    stats = {
        "total": len(selected),
        "completed": sum(1 for r in selected if r.status == "completed"),
        "in_progress": sum(1 for r in selected if r.status in ("safe", "default")),
        "at_risk": sum(1 for r in selected if r.status == "urgent"),
    }
    return selected, stats


# ---------- CSV ----------

def _summary_row(r: DaoWithStatus) -> list:
    return [
        r.numero_liste,
        r.objet_dossier,
        r.reference,
        r.autorite_contractante,
        _fmt_date(r.date_depot),
        _chef(r),
        ", ".join(m.name for m in r.equipe),
        r.progress,
        STATUS_LABELS[r.status],
    ]


def export_csv(rows: List[DaoWithStatus]) -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=";", lineterminator="\r\n")
    writer.writerow(CSV_HEADERS)
    for r in rows:
        writer.writerow(_summary_row(r))
    return ("\ufeff" + buf.getvalue()).encode("utf-8")


def export_dao_csv(dao: DaoWithStatus) -> bytes:
    """Un dossier : ligne de synthèse suivie du détail des tâches."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=";", lineterminator="\r\n")
    writer.writerow(CSV_HEADERS)
    writer.writerow(_summary_row(dao))
    writer.writerow([])
    writer.writerow(["N°", "Tâche", "Applicable", "Progression (%)", "Assignée à", "Commentaire"])
    for t in dao.tasks:
        writer.writerow([
            t.id,
            t.name,
            "Oui" if t.is_applicable else "Non",
            "" if t.progress is None else t.progress,
            _member_name(dao, t.assigned_to),
            t.comment or "",
        ])
    return ("\ufeff" + buf.getvalue()).encode("utf-8")


# ---------- DOCX ----------

def _add_dao_section(doc, dao: DaoWithStatus) -> None:
    doc.add_heading(f"{dao.numero_liste} - {dao.objet_dossier}", level=2)
    table = doc.add_table(rows=0, cols=2)
    table.style = "Table Grid"
    for label, value in [
        ("Référence", dao.reference),
        ("Autorité contractante", dao.autorite_contractante),
        ("Date de dépôt", _fmt_date(dao.date_depot)),
        ("Chef d'équipe", _chef(dao)),
        ("Équipe", ", ".join(m.name for m in dao.equipe)),
        ("Progression", f"{dao.progress} %"),
        ("Statut", STATUS_LABELS[dao.status]),
    ]:
        cells = table.add_row().cells
        cells[0].text = label
        cells[1].text = value
        for r in cells[0].paragraphs[0].runs:
            r.bold = True


def _add_tasks_table(doc, dao: DaoWithStatus) -> None:
    doc.add_heading("Tâches", level=3)
    table = doc.add_table(rows=1, cols=5)
    table.style = "Table Grid"
    for cell, title in zip(table.rows[0].cells, ["N°", "Tâche", "Progression", "Assignée à", "Commentaire"]):
        cell.text = title
        for r in cell.paragraphs[0].runs:
            r.bold = True
    for t in dao.tasks:
        if not t.is_applicable:
            progress = "N/A"
        else:
            progress = f"{t.progress or 0} %"
        cells = table.add_row().cells
        cells[0].text = str(t.id)
        cells[1].text = t.name
        cells[2].text = progress
        cells[3].text = _member_name(dao, t.assigned_to)
        cells[4].text = t.comment or ""


def _new_document(title: str, generated_at: datetime):
    doc = DocxDocument()
    doc.styles["Normal"].font.name = "Calibri"
    doc.styles["Normal"].font.size = Pt(10)

    heading = doc.add_heading(title, level=1)
    heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
    p = doc.add_paragraph(f"Généré le {generated_at.strftime('%d/%m/%Y à %H:%M')}")
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    return doc


def _to_bytes(doc) -> bytes:
    out = io.BytesIO()
    doc.save(out)
    return out.getvalue()


def export_docx(
    rows: List[DaoWithStatus],
    stats: Dict[str, int],
    generated_at: Optional[datetime] = None,
) -> bytes:
    doc = _new_document("Rapport de suivi des DAO", generated_at or datetime.now())

    doc.add_heading("Statistiques", level=2)
    for label, key in [
        ("Total des dossiers", "total"),
        ("Terminés", "completed"),
        ("En cours", "in_progress"),
        ("À risque", "at_risk"),
    ]:
        doc.add_paragraph(f"{label} : {stats[key]}", style="List Bullet")

    for r in rows:
        _add_dao_section(doc, r)

    return _to_bytes(doc)


def export_dao_docx(dao: DaoWithStatus, generated_at: Optional[datetime] = None) -> bytes:
    doc = _new_document(f"Fiche DAO {dao.numero_liste}", generated_at or datetime.now())
    _add_dao_section(doc, dao)
    _add_tasks_table(doc, dao)
    return _to_bytes(doc)
