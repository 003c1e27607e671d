"""Exceptions raised by the tax calculation package."""


class TaxEngineError(Exception):
    """Base class for ordertax errors."""


class InvalidInputError(TaxEngineError, ValueError):
    """Structurally invalid order draft or profile value (caller error)."""


class ProfileNotFoundError(TaxEngineError, LookupError):
    """The requested tax profile document does not exist."""
