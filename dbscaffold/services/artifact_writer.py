"""Saves generated files to disk without clobbering existing or read-only files."""

import logging
import os
import stat
from collections import Counter
from typing import List, Optional, Tuple

from ..errors import SaveConflictError
from ..models import ScaffoldedFile, ScaffoldedModel, SavedModelFiles

logger = logging.getLogger(__name__)


class ArtifactWriter:
    """Writes a ``ScaffoldedModel`` under an output directory.

    Every target is checked before anything is written: two artifacts that
    resolve to the same path are refused, existing files are refused unless
    overwriting is requested, and read-only files are always refused. The
    check and the writes are not atomic with respect to other processes
    writing the same directory.
    """

    def save(self,
             scaffolded_model: ScaffoldedModel,
             models_output_directory: str,
             overwrite_files: bool,
             context_output_directory: Optional[str] = None) -> SavedModelFiles:
        """Write all files and return their absolute paths.

        The context file is resolved against ``context_output_directory``
        (defaults to ``models_output_directory``) so a path such as
        ``../Data/Context.py`` lands in a sibling directory. Additional files
        are resolved against ``models_output_directory``.
        """
        models_dir = os.path.abspath(models_output_directory)
        context_dir = os.path.abspath(context_output_directory) if context_output_directory else models_dir

        targets: List[Tuple[ScaffoldedFile, str]] = [
            (scaffolded_model.context_file, self._resolve(context_dir, scaffolded_model.context_file.path))
        ]
        targets += [(f, self._resolve(models_dir, f.path)) for f in scaffolded_model.additional_files]

        self._check_output_files(targets, models_output_directory, overwrite_files)

        written = []
        for artifact, full_path in targets:
            directory = os.path.dirname(full_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(full_path, "w", encoding="utf-8", newline="") as f:
                f.write(artifact.code)
            logger.debug(f"Wrote {full_path}")
            written.append(full_path)

        logger.info(f"Saved {len(written)} files to {models_dir}")
        return SavedModelFiles(context_file=written[0], additional_files=tuple(written[1:]))

    def _check_output_files(self,
                            targets: List[Tuple[ScaffoldedFile, str]],
                            output_directory: str,
                            overwrite_files: bool) -> None:
        """Fail with every conflicting file listed before anything is written."""
        counts = Counter(os.path.normcase(full_path) for _, full_path in targets)
        duplicates = [artifact.path for artifact, full_path in targets if counts[os.path.normcase(full_path)] > 1]
        if duplicates:
            raise SaveConflictError.duplicate_files(output_directory, duplicates)

        if not overwrite_files:
            existing = [artifact.path for artifact, full_path in targets if os.path.exists(full_path)]
            if existing:
                raise SaveConflictError.existing_files(output_directory, existing)

        read_only = [artifact.path for artifact, full_path in targets
                     if os.path.exists(full_path) and self._is_read_only(full_path)]
        if read_only:
            raise SaveConflictError.read_only_files(output_directory, read_only)

    @staticmethod
    def _is_read_only(path: str) -> bool:
        return not os.stat(path).st_mode & stat.S_IWUSR

    @staticmethod
    def _resolve(base_directory: str, relative_path: str) -> str:
        """Absolute, normalized path of ``relative_path`` under ``base_directory``."""
        parts = relative_path.replace("\\", "/").split("/")
        return os.path.normpath(os.path.join(base_directory, *parts))
