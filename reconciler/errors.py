"""
reconciler/errors.py

Exceptions raised inside the reconciliation pipeline.
"""


class ReconcilerError(RuntimeError):
    """Base class for pipeline errors."""


class BatchShapeError(ReconcilerError):
    """Raised when a batch is neither a legacy record array nor a typed list."""


class ProfileStoreError(ReconcilerError):
    """Raised when a raw profile snapshot cannot be turned into a profile store."""
