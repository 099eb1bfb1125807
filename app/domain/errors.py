"""Domain error taxonomy for marketplace actions"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base error carrying a stable code for API responses"""

    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details or None,
            }
        }


class NotFoundError(DomainError):
    """Unknown session, payment, tutor or student id"""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity.capitalize()} '{entity_id}' not found",
            {"entity": entity, "id": entity_id},
        )


class InvalidTransitionError(DomainError):
    """Action not allowed from the entity's current state"""

    code = "INVALID_TRANSITION"
    status_code = 409


class DomainValidationError(DomainError):
    """Action input violates a business rule"""

    code = "VALIDATION_ERROR"
    status_code = 422
