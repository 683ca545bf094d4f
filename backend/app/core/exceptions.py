"""Service-layer errors.

Services raise these; endpoints translate them into HTTP responses.
``ValueError`` subclasses keep the existing ``except ValueError`` call sites
working.
"""

from __future__ import annotations


class NotFoundError(LookupError):
    """Referenced record does not exist (404)."""


class ValidationError(ValueError):
    """Input is well-formed but violates a business rule (400)."""


class ConflictError(ValueError):
    """A unique field is already taken (409)."""
