"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Operation conflicts with the current state of an entity."""


def invoice_not_found(invoice_id: str) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def invalid_rate(name: str, value: object) -> str:
    """Return message for a percentage outside [0, 100]."""
    return f"{name} must be a number between 0 and 100, got {value!r}"


def unknown_payment_term(code: object) -> str:
    """Return message for an unrecognized payment term code."""
    return (
        f"Unknown payment term {code!r}. "
        "Supported terms: NET15, NET30, NET45, NET60"
    )


def invalid_status_transition(invoice_id: str, status: str, action: str) -> str:
    """Return message when a lifecycle action is not allowed for a status."""
    return f"Cannot {action} invoice {invoice_id}: invoice is {status}"
