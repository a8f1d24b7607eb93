"""Reconciler exceptions."""


class ReconcilerError(Exception):
    """Base class for model reconciler errors."""
    pass


class SourceUnavailable(ReconcilerError):
    """Raised when an upstream source cannot be fetched or parsed."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")


class ConfigUnreadable(ReconcilerError):
    """Raised when the model-list configuration file cannot be read."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")
