"""Classification failures. All of them are recoverable via fallback."""


class ClassificationError(Exception):
    """Base class for classifier failures."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class ProviderUnavailable(ClassificationError):
    """Classification service unreachable, unauthorized or misconfigured."""


class ParseError(ClassificationError):
    """Classification service answered with something we cannot read."""
