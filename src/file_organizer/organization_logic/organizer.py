"""
Per-root orchestration of file rules, folder rules and empty-folder cleanup.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from file_organizer.file_access.local_accessor import Candidate, FileSystemAccessor
from file_organizer.file_access.manipulator import FileManipulator
from file_organizer.utils.error_handler import ErrorHandler, OrganizationError
from file_organizer.utils.path_matcher import normalize_path
from .conflict_resolver import DuplicateResolver
from .engine import FolderAction, RuleEvaluator, is_inside, same_path
from .rules import OrganizeConfig

logger = logging.getLogger(__name__)


class OrganizerState(Enum):
    """States a root directory passes through."""

    INIT = "init"
    VALIDATE_ROOT = "validate_root"
    PROCESS_FILES = "process_files"
    PROCESS_FOLDERS = "process_folders"
    DONE = "done"


@dataclass
class OrganizationSummary:
    """Counts for one run. In preview they describe intended actions."""

    preview: bool = False
    roots_processed: int = 0
    roots_skipped: int = 0
    files_moved: int = 0
    files_overwritten: int = 0
    duplicates_skipped: int = 0
    folders_renamed: int = 0
    folders_moved: int = 0
    folders_removed: int = 0
    errors: int = 0

    @property
    def total_actions(self) -> int:
        return (
            self.files_moved
            + self.files_overwritten
            + self.folders_renamed
            + self.folders_moved
            + self.folders_removed
        )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class DirectoryOrganizer:
    """Organize root directories according to an OrganizeConfig."""

    def __init__(
        self,
        config: OrganizeConfig,
        dry_run: bool = False,
        accessor: Optional[FileSystemAccessor] = None,
        error_handler: Optional[ErrorHandler] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the organizer.

        Args:
            config: Immutable run configuration
            dry_run: Preview mode; log actions without performing them
            accessor: File system primitives
            error_handler: Collects per-item failures
            clock: Current time source for age filters and timestamps
        """
        self.config = config
        self.dry_run = dry_run
        self.clock = clock
        self.accessor = accessor or FileSystemAccessor()
        self.error_handler = error_handler or ErrorHandler()
        self.manipulator = FileManipulator(
            config.global_exclusions,
            dry_run=dry_run,
            accessor=self.accessor,
            error_handler=self.error_handler,
        )
        self.evaluator = RuleEvaluator(config, accessor=self.accessor, clock=clock)
        self.resolver = DuplicateResolver(self.manipulator, clock=clock)
        self.summary = OrganizationSummary(preview=dry_run)
        self._protected_roots: set = set()

    def organize(self, roots: Iterable[Path]) -> OrganizationSummary:
        """Organize each root in turn.

        An unexpected exception for one root stops the whole run.

        Args:
            roots: Root directories of this run

        Returns:
            OrganizationSummary for the processed roots
        """
        roots = [Path(r) for r in roots]
        self._protected_roots = {self._key(r) for r in roots}

        for root in roots:
            try:
                if self.organize_root(root):
                    self.summary.roots_processed += 1
                else:
                    self.summary.roots_skipped += 1
            except Exception as e:
                logger.error(f"Unexpected error while organizing {root}: {e}")
                raise OrganizationError(str(root), e) from e

        return self._collect_summary()

    def organize_root(self, root: Path) -> bool:
        """Run the state machine for one root directory.

        Returns:
            False if the root was rejected during validation
        """
        root = Path(root)
        if not self._protected_roots:
            self._protected_roots = {self._key(root)}

        state = self._transition(root, OrganizerState.INIT, OrganizerState.VALIDATE_ROOT)

        if not self.accessor.is_dir(root):
            logger.warning(f"Root directory does not exist: {root}")
            self._transition(root, state, OrganizerState.DONE)
            return False
        if self.config.global_exclusions.excludes_folder(root):
            logger.warning(f"Root directory is excluded: {root}")
            self._transition(root, state, OrganizerState.DONE)
            return False

        state = self._transition(root, state, OrganizerState.PROCESS_FILES)
        self.process_files(root)

        state = self._transition(root, state, OrganizerState.PROCESS_FOLDERS)
        self.process_folders(root)

        self._transition(root, state, OrganizerState.DONE)
        return True

    def process_files(self, root: Path):
        """Apply file rules to the immediate file children of root."""
        try:
            files = self.accessor.list_files(root)
        except OSError as e:
            self.error_handler.handle_error(e, f"listing files in {root}")
            return

        logger.info(f"Found {len(files)} files in {root}")
        for file_path in files:
            if self.config.global_exclusions.excludes_file(file_path):
                logger.info(f"Excluded file skipped: {file_path}")
                continue
            try:
                self.process_file(file_path, root)
            except OSError as e:
                self.error_handler.handle_error(e, f"organizing file {file_path}")

    def process_file(self, file_path: Path, root: Path):
        """Route one file to its destination."""
        candidate = self.accessor.snapshot(file_path)
        match = self.evaluator.evaluate_file(candidate, root)
        target = match.destination_dir / candidate.name

        if same_path(candidate.path, target):
            logger.debug(f"{candidate.path} is already in place")
            return

        logger.info(
            f"{candidate.name}: {match.rule_name} -> {match.destination_dir} "
            f"(duplicates: {match.strategy.value})"
        )

        if not self.manipulator.create_folder(match.destination_dir):
            logger.warning(f"Destination unavailable, leaving {candidate.path}")
            return

        if self.accessor.exists(target):
            if self.accessor.is_dir(target):
                logger.warning(f"A folder named {target} exists, leaving {candidate.path}")
                return
            resolution = self.resolver.resolve(match.strategy, candidate.path, target)
            if resolution.final_path is None:
                self.summary.duplicates_skipped += 1
            return

        self.manipulator.move_file(candidate.path, target)

    def process_folders(self, root: Path):
        """Apply folder rules to every non-excluded folder below root.

        The folder list is taken once up front. A folder that was renamed or
        moved earlier in this pass is not evaluated again under its new path.
        In preview the list also holds the folders the file pass would have
        created, and drops what a previewed move or rename took away.
        """
        exclusions = self.config.global_exclusions
        folders = self.accessor.walk_dirs(
            root,
            skip=exclusions.excludes_folder,
            onerror=lambda e: self.error_handler.handle_error(
                e, f"listing folders below {root}"
            ),
        )
        if self.dry_run:
            folders = self._with_preview_folders(root, folders)
        logger.info(f"Found {len(folders)} folders below {root}")

        for folder in folders:
            if self._key(folder) in self._protected_roots:
                logger.info(f"Root directory {folder} is protected from folder rules")
                continue
            if not self._folder_present(folder):
                logger.info(f"{folder} no longer exists at this path, skipping")
                continue

            try:
                candidate = self._snapshot_folder(folder)
                action = self.evaluator.evaluate_folder(candidate, root)
                if action is None or self._carries_protected(action):
                    continue
                if action.kind == "rename":
                    self.manipulator.rename_folder(action.source, action.target)
                else:
                    self.manipulator.move_folder(action.source, action.target)
            except OSError as e:
                self.error_handler.handle_error(e, f"applying folder rules to {folder}")

    def _carries_protected(self, action: FolderAction) -> bool:
        """True if the action would carry a root or an excluded folder along."""
        source = action.source
        for key in sorted(self._protected_roots):
            if is_inside(key, source):
                logger.warning(
                    f"Refusing to {action.kind} {source}: "
                    f"it contains the root directory {key}"
                )
                return True

        excluded = self._excluded_descendants(source)
        if excluded:
            logger.warning(
                f"Refusing to {action.kind} {source}: "
                f"it contains the excluded folder {excluded[0]}"
            )
            return True
        return False

    def _excluded_descendants(self, folder: Path) -> List[Path]:
        if not self.accessor.exists(folder):
            return []

        found = []

        def excluded(path: Path) -> bool:
            if self.config.global_exclusions.excludes_folder(path):
                found.append(path)
                return True
            return False

        self.accessor.walk_dirs(
            folder,
            skip=excluded,
            onerror=lambda e: self.error_handler.handle_error(
                e, f"listing folders below {folder}"
            ),
        )
        return found

    def _folder_present(self, folder: Path) -> bool:
        if self.dry_run and self.manipulator.preview_moved_away(folder):
            return False
        return self.accessor.exists(folder) or self.manipulator.preview_exists(folder)

    def _snapshot_folder(self, folder: Path) -> Candidate:
        if self.dry_run and not self.accessor.exists(folder):
            # Would have been created moments ago by the file pass
            now = self.clock()
            return Candidate(
                path=folder,
                name=folder.name,
                extension="",
                modified_time=now,
                created_time=now,
                is_dir=True,
            )
        return self.accessor.snapshot(folder)

    def _with_preview_folders(self, root: Path, folders: List[Path]) -> List[Path]:
        extra = [
            directory
            for directory in self.manipulator.preview_created
            if is_inside(directory, root) and not self._under_excluded(directory, root)
        ]
        if not extra:
            return folders
        return self._walk_order(root, folders + extra)

    def _under_excluded(self, folder: Path, root: Path) -> bool:
        current = Path(folder)
        while is_inside(current, root):
            if self.config.global_exclusions.excludes_folder(current):
                return True
            current = current.parent
        return False

    def _walk_order(self, root: Path, folders: List[Path]) -> List[Path]:
        """Order folders the way FileSystemAccessor.walk_dirs lists them."""
        children: Dict[str, Dict[str, Path]] = {}
        for folder in folders:
            siblings = children.setdefault(self._key(folder.parent), {})
            siblings.setdefault(self._key(folder), folder)

        ordered: List[Path] = []
        pending = [self._key(root)]
        while pending:
            kids = sorted(
                children.get(pending.pop(0), {}).values(),
                key=lambda p: p.name.lower(),
            )
            ordered.extend(kids)
            pending[:0] = [self._key(kid) for kid in kids]
        return ordered

    def remove_empty_folders(self, roots: Iterable[Path]) -> int:
        """Delete empty directories below each root, deepest first.

        Roots themselves are kept. In preview a folder reported as removable
        is treated as gone when its parent is checked.

        Returns:
            Number of folders removed (or that would be removed)
        """
        roots = [Path(r) for r in roots]
        protected = self._protected_roots or {self._key(r) for r in roots}
        before = self.manipulator.count("remove")

        for root in roots:
            if not self.accessor.is_dir(root):
                continue
            if self.config.global_exclusions.excludes_folder(root):
                logger.info(f"Excluded root skipped for cleanup: {root}")
                continue
            logger.info(f"Removing empty folders below {root}")
            self._prune(root, protected, is_root=True)

        removed = self.manipulator.count("remove") - before
        self.summary.folders_removed = self.manipulator.count("remove")
        return removed

    def _prune(self, directory: Path, protected: set, is_root: bool = False) -> bool:
        try:
            entries = self.accessor.list_dir(directory)
        except OSError as e:
            self.error_handler.handle_error(e, f"listing {directory}")
            return False

        remaining = 0
        for entry in entries:
            if entry.is_dir() and not entry.is_symlink():
                if self.config.global_exclusions.excludes_folder(entry):
                    remaining += 1
                    continue
                if self._prune(entry, protected):
                    continue
            remaining += 1

        if is_root or remaining or self._key(directory) in protected:
            return False
        return self.manipulator.remove_empty_folder(directory)

    def _collect_summary(self) -> OrganizationSummary:
        count = self.manipulator.count
        self.summary.files_moved = count("move")
        self.summary.files_overwritten = count("overwrite")
        self.summary.folders_renamed = count("rename")
        self.summary.folders_moved = count("move_folder")
        self.summary.folders_removed = count("remove")
        self.summary.errors = self.error_handler.total_errors
        return self.summary

    def log_summary(self) -> OrganizationSummary:
        """Log the final counts of this run."""
        summary = self._collect_summary()
        prefix = "[PREVIEW] " if self.dry_run else ""
        logger.info(f"{prefix}Organization complete")
        for key, value in summary.to_dict().items():
            if key != "preview":
                logger.info(f"{prefix}  {key}: {value}")
        if self.dry_run:
            logger.info("PREVIEW MODE: No files or folders were changed")
        return summary

    def _transition(
        self, root: Path, current: OrganizerState, new: OrganizerState
    ) -> OrganizerState:
        logger.info(f"[{root}] {current.value} -> {new.value}")
        return new

    @staticmethod
    def _key(path: Path) -> str:
        return normalize_path(path).rstrip("/")
