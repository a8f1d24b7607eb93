import logging
from typing import TYPE_CHECKING

from .cache import TTLCache
from .config import Settings
from .errors import ConfigUnreadable, ReconcilerError, SourceUnavailable
from .models import MergedModel, ReconciliationResult

# For type checkers, import the service statically
# At runtime, it's lazy-loaded via __getattr__
if TYPE_CHECKING:
    from .service import ModelReconciliationService, get_reconciliation_service

logging.getLogger("model_reconciler").addHandler(logging.NullHandler())

__all__ = [
    "TTLCache",
    "Settings",
    "ReconcilerError",
    "SourceUnavailable",
    "ConfigUnreadable",
    "MergedModel",
    "ReconciliationResult",
    "ModelReconciliationService",
    "get_reconciliation_service",
]


def __getattr__(name):
    """Lazy-load the service so importing the data model stays cheap."""
    if name == "ModelReconciliationService":
        from .service import ModelReconciliationService

        return ModelReconciliationService
    if name == "get_reconciliation_service":
        from .service import get_reconciliation_service

        return get_reconciliation_service
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
