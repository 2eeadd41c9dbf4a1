"""
File and folder actions for organizing directories.
"""

import re
import logging
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass, asdict
from datetime import datetime

from file_organizer.organization_logic.rules import ExclusionSet
from file_organizer.utils.error_handler import ErrorHandler
from file_organizer.utils.path_matcher import normalize_path
from .local_accessor import FileSystemAccessor

logger = logging.getLogger(__name__)

DRIVE_ROOT = re.compile(r"^[A-Za-z]:[\\/]?$")


@dataclass
class FileOperation:
    """Represents a file or folder operation."""

    operation_type: str  # 'create', 'move', 'overwrite', 'move_folder', 'rename', 'remove'
    source_path: str
    target_path: str
    timestamp: str
    success: bool
    dry_run: bool = False
    skipped: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self):
        return asdict(self)


def is_filesystem_root(path) -> bool:
    """Check for a drive root ('C:\\') or a POSIX anchor ('/')."""
    text = str(path)
    if DRIVE_ROOT.match(text):
        return True
    candidate = Path(text)
    return candidate.parent == candidate


class FileManipulator:
    """Perform organizer actions, gated by exclusions and preview mode.

    Exclusions are checked again for every path an action touches, because
    a computed destination can itself land inside an excluded tree.
    """

    def __init__(
        self,
        exclusions: ExclusionSet,
        dry_run: bool = False,
        accessor: Optional[FileSystemAccessor] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """Initialize file manipulator.

        Args:
            exclusions: Global exclusion patterns
            dry_run: Log intended actions without touching the file system
            accessor: File system primitives
            error_handler: Records failed operations
        """
        self.exclusions = exclusions
        self.dry_run = dry_run
        self.accessor = accessor or FileSystemAccessor()
        self.error_handler = error_handler or ErrorHandler()
        self.operations_log: List[FileOperation] = []
        # Preview only: pretended folders and sources of previewed folder moves
        self.preview_created: List[Path] = []
        self.preview_relocated: List[Path] = []

        logger.info(f"FileManipulator initialized: dry_run={dry_run}")

    def create_folder(self, directory: Path) -> bool:
        """Create a directory (and parents) if it does not exist.

        In preview mode this reports success so dependent steps can be
        logged as well.

        Returns:
            True if the directory exists (or would exist in preview)
        """
        directory = Path(directory)
        operation = self._new_operation("create", directory, directory)

        reason = self._excluded_folder(directory, directory.parent)
        if reason:
            return self._skip(operation, reason)

        if self.accessor.exists(directory) or self.preview_exists(directory):
            return True

        if self.dry_run:
            logger.info(f"[PREVIEW] Would create directory: {directory}")
            operation.dry_run = True
            self._remember_created(directory)
            self._log_operation(operation)
            return True

        try:
            self.accessor.create_dir(directory)
            operation.success = True
            logger.info(f"Created directory: {directory}")
        except Exception as e:
            operation.error = str(e)
            self.error_handler.handle_error(e, f"creating directory {directory}")

        self._log_operation(operation)
        return operation.success

    def move_file(self, source: Path, target: Path, overwrite: bool = False) -> bool:
        """Move a file.

        Args:
            source: Source file path
            target: Target file path
            overwrite: Replace an existing target in one call

        Returns:
            True if the file was moved
        """
        source, target = Path(source), Path(target)
        operation = self._new_operation(
            "overwrite" if overwrite else "move", source, target
        )

        reason = self._excluded_file(source, target) or self._excluded_folder(
            target.parent
        )
        if reason:
            return self._skip(operation, reason)

        if self.dry_run:
            verb = "replace" if overwrite else "move"
            logger.info(f"[PREVIEW] Would {verb}: {source} -> {target}")
            operation.dry_run = True
            self._log_operation(operation)
            return False

        if not overwrite and self.accessor.exists(target):
            return self._skip(operation, f"target already exists: {target}")

        try:
            if overwrite:
                self.accessor.replace_file(source, target)
                logger.info(f"Replaced: {target} with {source}")
            else:
                self.accessor.move_file(source, target)
                logger.info(f"Moved: {source} -> {target}")
            operation.success = True
        except Exception as e:
            operation.error = str(e)
            self.error_handler.handle_error(e, f"moving {source} to {target}")

        self._log_operation(operation)
        return operation.success

    def move_folder(self, source: Path, target: Path) -> bool:
        """Move a folder to a new parent; the target parent is created first."""
        source, target = Path(source), Path(target)
        operation = self._new_operation("move_folder", source, target)

        reason = self._excluded_folder(source, target, target.parent)
        if reason:
            return self._skip(operation, reason)

        if not self.create_folder(target.parent):
            return self._skip(operation, f"could not create {target.parent}")

        if self.dry_run:
            logger.info(f"[PREVIEW] Would move folder: {source} -> {target}")
            operation.dry_run = True
            self.preview_relocated.append(source)
            self._log_operation(operation)
            return False

        try:
            self.accessor.move_dir(source, target)
            operation.success = True
            logger.info(f"Moved folder: {source} -> {target}")
        except Exception as e:
            operation.error = str(e)
            self.error_handler.handle_error(e, f"moving folder {source} to {target}")

        self._log_operation(operation)
        return operation.success

    def rename_folder(self, source: Path, target: Path) -> bool:
        """Rename a folder within its parent directory."""
        source, target = Path(source), Path(target)
        operation = self._new_operation("rename", source, target)

        reason = self._excluded_folder(source, target, target.parent)
        if reason:
            return self._skip(operation, reason)

        if self.dry_run:
            logger.info(f"[PREVIEW] Would rename folder: {source} -> {target.name}")
            operation.dry_run = True
            self.preview_relocated.append(source)
            self._log_operation(operation)
            return False

        case_only = str(source).lower() == str(target).lower()
        if not case_only and self.accessor.exists(target):
            return self._skip(operation, f"target already exists: {target}")

        try:
            self.accessor.rename_dir(source, target)
            operation.success = True
            logger.info(f"Renamed folder: {source} -> {target.name}")
        except Exception as e:
            operation.error = str(e)
            self.error_handler.handle_error(e, f"renaming folder {source}")

        self._log_operation(operation)
        return operation.success

    def remove_empty_folder(self, directory: Path) -> bool:
        """Remove a directory if it is empty.

        Filesystem roots are always refused, preview or not.

        Returns:
            True if the directory was removed (or would be, in preview)
        """
        directory = Path(directory)
        operation = self._new_operation("remove", directory, directory)

        if is_filesystem_root(directory):
            logger.error(f"Refusing to remove filesystem root: {directory}")
            return self._skip(operation, "filesystem root")

        reason = self._excluded_folder(directory)
        if reason:
            return self._skip(operation, reason)

        if self.dry_run:
            logger.info(f"[PREVIEW] Would remove empty folder: {directory}")
            operation.dry_run = True
            self._log_operation(operation)
            return True

        try:
            operation.success = self.accessor.delete_if_empty(directory)
            if operation.success:
                logger.info(f"Removed empty folder: {directory}")
            else:
                operation.skipped = "not empty"
                logger.debug(f"Folder not empty, kept: {directory}")
        except Exception as e:
            operation.error = str(e)
            self.error_handler.handle_error(e, f"removing folder {directory}")

        self._log_operation(operation)
        return operation.success

    def count(self, operation_type: str, include_preview: bool = True) -> int:
        """Count performed (and optionally previewed) operations of a type."""
        return sum(
            1
            for op in self.operations_log
            if op.operation_type == operation_type
            and (op.success or (include_preview and op.dry_run))
        )

    def get_operation_summary(self) -> dict:
        """Get summary of logged operations."""
        return {
            "total_operations": len(self.operations_log),
            "successful": sum(1 for op in self.operations_log if op.success),
            "previewed": sum(1 for op in self.operations_log if op.dry_run),
            "skipped": sum(1 for op in self.operations_log if op.skipped),
            "failed": sum(1 for op in self.operations_log if op.error),
        }

    def preview_exists(self, directory: Path) -> bool:
        """True if a previewed create_folder call would have made directory."""
        key = _key(directory)
        return any(_key(created) == key for created in self.preview_created)

    def preview_moved_away(self, path: Path) -> bool:
        """True if path is, or lies below, a folder whose move was previewed."""
        key = _key(path)
        return any(
            key == _key(source) or key.startswith(_key(source) + "/")
            for source in self.preview_relocated
        )

    def _remember_created(self, directory: Path):
        # Parents are created too, so record every missing ancestor first
        missing = []
        current = directory
        while not self.accessor.exists(current) and not self.preview_exists(current):
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent
        self.preview_created.extend(reversed(missing))

    def _excluded_file(self, *paths: Path) -> Optional[str]:
        for path in paths:
            if self.exclusions.excludes_file(path):
                return f"excluded path: {path}"
        return None

    def _excluded_folder(self, *paths: Path) -> Optional[str]:
        for path in paths:
            if self.exclusions.excludes_folder(path):
                return f"excluded path: {path}"
        return None

    def _new_operation(self, operation_type: str, source: Path, target: Path):
        return FileOperation(
            operation_type=operation_type,
            source_path=str(source),
            target_path=str(target),
            timestamp=datetime.now().isoformat(),
            success=False,
        )

    def _skip(self, operation: FileOperation, reason: str) -> bool:
        operation.skipped = reason
        logger.info(f"Skipping {operation.operation_type} of {operation.source_path}: {reason}")
        self._log_operation(operation)
        return False

    def _log_operation(self, operation: FileOperation):
        self.operations_log.append(operation)


def _key(path: Path) -> str:
    return normalize_path(path).rstrip("/")
