"""Exceptions raised across BrixShield.

Unknown ids are not errors: the store silently ignores them and the API
answers 404.
"""


class BrixShieldError(Exception):
    """Base class for all BrixShield errors."""


class InputFormatError(BrixShieldError, ValueError):
    """Raised before scoring when the submitted URL or file metadata is unusable."""


class TransientLookupFailure(BrixShieldError):
    """A reputation service could not be reached or answered garbage."""


class PersistenceFailure(BrixShieldError):
    """The key/value storage backend failed to read or write."""


class RecommendationError(BrixShieldError):
    """The text-completion service did not produce recommendations."""
