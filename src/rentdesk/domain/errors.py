"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. None of them is transient:
    the caller has to change the request before trying again.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Request is well formed but clashes with the current lifecycle state."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


def client_not_found(client_id: int) -> str:
    """Return message for missing client."""
    return f"Client {client_id} not found"


def item_not_found(item_id: int) -> str:
    """Return message for missing item."""
    return f"Item {item_id} not found"


def rental_not_found(rental_id: int) -> str:
    """Return message for missing rental."""
    return f"Rental {rental_id} not found"


def payment_not_found(payment_id: int) -> str:
    """Return message for missing payment."""
    return f"Payment {payment_id} not found"


def register_not_found(register_id: int) -> str:
    """Return message for missing cash register."""
    return f"Cash register {register_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing cash transaction."""
    return f"Cash transaction {transaction_id} not found"


def register_already_open(register_id: int) -> str:
    """Return message when the operator already has an open register."""
    return (
        f"Operator already has an open cash register (ID: {register_id}). "
        "Close it before opening a new one."
    )


def item_unavailable(status: str) -> str:
    """Return message when an item cannot be rented."""
    return f"Item is not available (current status: {status})"


def payment_exceeds_balance(total: Decimal, paid: Decimal, remaining: Decimal) -> str:
    """Return message when a payment is larger than the rental's balance."""
    return (
        "Amount exceeds the remaining balance. "
        f"Total: {total:.2f}, Paid: {paid:.2f}, Remaining: {remaining:.2f}"
    )
