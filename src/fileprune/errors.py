"""Exceptions raised by FilePrune."""


class FilePruneError(Exception):
    """Base class for FilePrune errors."""


class ConfigurationError(FilePruneError):
    """An explicitly requested configuration file could not be used."""


class AnalysisAbortedError(FilePruneError):
    """The analysis cannot produce a trustworthy result and stops."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class GraphFrozenError(FilePruneError):
    """A frozen reference graph was modified."""


class SourceReadError(FilePruneError):
    """A single source file could not be read or parsed."""

    def __init__(self, path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
