"""
Exceptions raised by SocietyOps services.

Each class carries the HTTP status and ``error_code`` that the handler in
``app.main`` writes into the error envelope, so services never build
responses themselves::

    raise NotFoundError("Plot", plot_id)
    raise InvalidStateError("Cannot transition from Sold to Booked", current_state="sold")
"""
from typing import Any, Dict, Optional


class SocietyException(Exception):
    """Root of the hierarchy; unexpected failures map to 500."""

    error_code: str = "SOCIETY_ERROR"
    status_code: int = 500

    def __init__(self, message: str = "An unexpected error occurred", *, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @staticmethod
    def _with_context(details: Optional[Dict[str, Any]], **context: Any) -> Dict[str, Any]:
        # None and empty-string context is left out of the envelope
        merged = dict(details or {})
        for key, value in context.items():
            if value is None or value == "":
                continue
            merged[key] = value
        return merged


class ValidationError(SocietyException):
    """Input that is well-formed JSON but names something that does not fit."""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str = "Validation failed", *, field: Optional[str] = None,
                 value: Any = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            details=self._with_context(details, field=field, value=None if value is None else str(value)),
        )


class InvalidStateError(SocietyException):
    """A status change the workflow does not allow from the record's current status."""

    error_code = "INVALID_STATE"
    status_code = 400

    def __init__(self, message: str = "Operation not allowed in current state", *,
                 current_state: Optional[str] = None, allowed_states: Optional[list] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            details=self._with_context(details, current_state=current_state, allowed_states=allowed_states),
        )


class BusinessRuleError(SocietyException):
    error_code = "BUSINESS_RULE_ERROR"
    status_code = 400

    def __init__(self, message: str = "Business rule violation", *, rule: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=self._with_context(details, rule=rule))


class NotFoundError(SocietyException):
    """Missing or soft-deleted; callers cannot tell the two apart."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str = "Resource", resource_id: Any = None, *,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"{resource} not found",
            details=self._with_context(
                details,
                resource=resource,
                resource_id=None if resource_id is None else str(resource_id),
            ),
        )


class ConflictError(SocietyException):
    error_code = "CONFLICT"
    status_code = 409


class DuplicateError(ConflictError):
    """A live record already holds the same name, code or plot number."""

    error_code = "DUPLICATE_ERROR"

    def __init__(self, resource: str = "Resource", *, field: Optional[str] = None,
                 value: Any = None, details: Optional[Dict[str, Any]] = None):
        if field and value:
            message = f"{resource} with {field} {value} already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(
            message,
            details=self._with_context(
                details, resource=resource, field=field, value=None if value is None else str(value),
            ),
        )
