# Core/errors.py
"""
Erreurs métier du suivi DAO.

Chaque erreur porte le code HTTP et le code applicatif renvoyés au front
par les handlers déclarés dans app/main.py :

    DaoError
    ├── ValidationError   400  entrée invalide (détail par champ)
    ├── InvalidReference  400  assignation à un membre absent de l'équipe
    ├── Unauthorized      401  jeton absent, invalide ou expiré
    ├── Forbidden         403  rôle insuffisant
    ├── NotFound          404  DAO / tâche / utilisateur / commentaire absent
    ├── Conflict          409  numéro de liste ou email déjà utilisé
    └── StorageError      500  échec du stockage (détail jamais exposé)
"""
from typing import Any, Dict, List, Optional


class DaoError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        if code:
            self.code = code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class ValidationError(DaoError):
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[List[Dict[str, str]]] = None,
    ):
        super().__init__(message, code)
        self.details = details or ([{"field": field, "message": message}] if field else [])

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        if self.details:
            d["details"] = self.details
        return d


class InvalidReference(DaoError):
    status_code = 400
    code = "INVALID_REFERENCE"


class Unauthorized(DaoError):
    status_code = 401
    code = "UNAUTHORIZED"


class Forbidden(DaoError):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(DaoError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(DaoError):
    status_code = 409
    code = "CONFLICT"


class StorageError(DaoError):
    status_code = 500
    code = "STORAGE_ERROR"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": "Erreur interne du stockage.", "code": self.code}
