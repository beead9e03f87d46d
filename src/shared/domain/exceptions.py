"""Error taxonomy shared by every bounded context.

Module exceptions subclass one of these kinds; the API layer maps the
kind (not the concrete class) to an HTTP status.
"""

from __future__ import annotations


class DomainError(Exception):
    """Root of all domain failures."""


class NotFound(DomainError):
    """A referenced user, product or order does not exist."""


class InvalidInput(DomainError):
    """The request is malformed (bad status value, empty item list...)."""


class BusinessRuleViolation(DomainError):
    """The request is well-formed but breaks a business rule."""


class TransportFailure(DomainError):
    """An event could not be handed to the message channel."""


class PersistenceFailure(DomainError):
    """The store was unavailable while a write was in progress."""
