"""Exception hierarchy separating fatal startup failures from per-turn ones."""

from pathlib import Path


class PersoError(Exception):
    """Base class for all application errors."""


class StartupError(PersoError):
    """Failure while initializing; the chat loop cannot start."""


class LoadError(StartupError):
    """The source document could not be turned into text."""


class DocumentNotFoundError(LoadError, FileNotFoundError):
    """The document path does not exist."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(
            f"File '{path}' not found! Please place it in the project folder."
        )


class ExtractionFailedError(LoadError):
    """The file exists but text extraction failed."""


class ClientConfigurationError(StartupError):
    """An API client could not be constructed."""


class IndexBuildError(StartupError):
    """Embedding the document or populating the index failed."""


class TurnError(PersoError):
    """Failure answering a single question; the session continues."""


class EmbeddingError(TurnError):
    """The embedding service failed or returned unusable vectors."""


class CompletionError(TurnError):
    """The completion service failed or returned no answer."""
