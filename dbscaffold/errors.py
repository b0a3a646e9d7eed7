"""Exceptions raised by the scaffolding pipeline."""

from typing import List, Optional

# Separator used when rendering a list of files into an error message.
LIST_SEPARATOR = ", "


class ScaffoldingError(Exception):
    """Base class for every error raised by dbscaffold."""


class ConfigurationError(ScaffoldingError):
    """A symbolic connection reference could not be resolved."""

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.name = name


class IntrospectionError(ScaffoldingError):
    """Reading the database schema failed.

    The provider fault is always chained as ``__cause__``.
    """


class ModelBuildError(ScaffoldingError):
    """The schema snapshot violates a structural invariant."""

    def __init__(self, message: str, object_name: str):
        super().__init__(message)
        self.object_name = object_name


class SaveConflictError(ScaffoldingError):
    """Generated files could not be saved without clobbering existing ones."""

    EXISTING = "existing"
    READ_ONLY = "read_only"
    DUPLICATE = "duplicate"

    def __init__(self, kind: str, directory: str, files: List[str]):
        self.kind = kind
        self.directory = directory
        self.files = list(files)
        super().__init__(self._render())

    @classmethod
    def existing_files(cls, directory: str, files: List[str]) -> "SaveConflictError":
        return cls(cls.EXISTING, directory, files)

    @classmethod
    def read_only_files(cls, directory: str, files: List[str]) -> "SaveConflictError":
        return cls(cls.READ_ONLY, directory, files)

    @classmethod
    def duplicate_files(cls, directory: str, files: List[str]) -> "SaveConflictError":
        return cls(cls.DUPLICATE, directory, files)

    def _render(self) -> str:
        joined = LIST_SEPARATOR.join(self.files)
        if self.kind == self.DUPLICATE:
            return (
                f"No files were generated in directory '{self.directory}'. "
                f"The following file(s) would be written more than once: {joined}."
            )
        if self.kind == self.READ_ONLY:
            return (
                f"No files were generated in directory '{self.directory}'. "
                f"The following file(s) are read-only: {joined}."
            )
        return (
            f"The following file(s) already exist in directory '{self.directory}': {joined}. "
            f"Use the overwrite option to replace these files."
        )
