# Core/text.py
import re

_TAG_RE = re.compile(r"<[^>]*>")


def strip_tags(value: str) -> str:
    """Retire les balises HTML et les espaces de bord d'un texte libre."""
    return _TAG_RE.sub("", value or "").strip()
