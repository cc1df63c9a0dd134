# app/models/base.py
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Champs en snake_case côté Python, exposés en camelCase (contrat JSON du front)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_doc(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def validation_details(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Convertit les erreurs pydantic en liste {field, message}.
    Le préfixe "body" ajouté par FastAPI est retiré du chemin.
    """
    out = []
    for e in errors:
        loc = [str(p) for p in e.get("loc", ()) if p != "body"]
        out.append({"field": ".".join(loc), "message": e.get("msg", "")})
    return out
