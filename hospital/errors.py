"""
Errori sollevati dal livello di accesso ai dati.
"""

from __future__ import annotations

from typing import Any


class HospitalError(Exception):
    """Errore base del dominio."""

    error_code: str = "HOSPITAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class StoreUnavailable(HospitalError):
    """Connessione o infrastruttura transazionale non disponibile."""

    error_code = "STORE_UNAVAILABLE"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Store unavailable: {reason}", {"reason": reason})


class NotFound(HospitalError):
    error_code = "NOT_FOUND"

    def __init__(self, entity: str, key: Any, field: str = "id") -> None:
        self.entity = entity
        message = f"{entity} with {field} {key!r} not found"
        super().__init__(message, {"entity": entity, "field": field, "value": key})


class Ambiguous(HospitalError):
    """Una ricerca che deve trovare una sola riga ne ha trovate più di una."""

    error_code = "AMBIGUOUS"

    def __init__(self, entity: str, key: Any, field: str = "name") -> None:
        self.entity = entity
        message = f"More than one {entity} with {field} {key!r}"
        super().__init__(message, {"entity": entity, "field": field, "value": key})


class ReferencedByOthers(HospitalError):
    """Cancellazione rifiutata: ci sono appuntamenti che puntano alla riga."""

    error_code = "REFERENCED_BY_OTHERS"

    def __init__(self, entity: str, key: Any, references: int) -> None:
        self.entity = entity
        self.references = references
        message = f"{entity} {key!r} is referenced by {references} appointment(s)"
        super().__init__(message, {"entity": entity, "id": key, "references": references})


class TransactionStateError(HospitalError):
    error_code = "TRANSACTION_ACTIVE"

    def __init__(self) -> None:
        super().__init__("A transaction is already active on this session")
