"""Generated files and the result of saving them."""

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(frozen=True)
class ScaffoldedFile:
    """One generated file: a relative path and its text."""
    path: str
    code: str


@dataclass
class ScaffoldedModel:
    """Output of code generation: the context file plus the per-entity files."""
    context_file: ScaffoldedFile
    additional_files: List[ScaffoldedFile] = field(default_factory=list)

    @property
    def all_files(self) -> List[ScaffoldedFile]:
        return [self.context_file] + list(self.additional_files)


@dataclass(frozen=True)
class SavedModelFiles:
    """Absolute paths written by a save, additional files in input order."""
    context_file: str
    additional_files: Tuple[str, ...] = ()


# Names used across the pipeline description.
GeneratedArtifactSet = ScaffoldedModel
WriteResult = SavedModelFiles
