# Core/numbering.py
import re
from typing import Iterable

from Core.errors import ValidationError

MAX_SEQUENCE = 999


def next_dao_number(existing_numeros: Iterable[str], year: int) -> str:
    """
    Prochain numéro de liste pour l'année : DAO-<année>-<séquence sur 3 chiffres>.
    Les numéros des autres années (ou mal formés) sont ignorés.
    Lève ValidationError au-delà de 999 dossiers dans l'année.
    """
    pattern = re.compile(rf"^DAO-{year}-(\d{{3}})$")
    numbers = []
    for numero in existing_numeros:
        m = pattern.match(numero or "")
        if m:
            numbers.append(int(m.group(1)))

    next_number = max(numbers, default=0) + 1
    if next_number > MAX_SEQUENCE:
        raise ValidationError(
            f"Nombre maximal de DAO atteint pour l'année {year}",
            field="numeroListe",
            code="YEAR_LIMIT_EXCEEDED",
        )
    return f"DAO-{year}-{next_number:03d}"
