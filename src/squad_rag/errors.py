"""Exception hierarchy.

Only failures that originate in this package get their own type.
Embedding-model and vector-index errors are propagated exactly as the
collaborator raised them.
"""

from __future__ import annotations


class SquadRagError(Exception):
    """Base class for errors raised by ``squad_rag`` itself."""


class ConfigurationError(SquadRagError):
    """A required setting is missing or invalid; raised before any I/O."""


class SourceReadError(SquadRagError):
    """The dataset could not be fetched or parsed."""
