"""
Rule evaluation for files and folders.

Rules are plain ordered tuples: the first rule that matches wins and no
other conflict resolution takes place.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from file_organizer.file_access.local_accessor import Candidate, FileSystemAccessor
from file_organizer.utils.path_matcher import matches, matches_any, normalize_path
from .rules import DuplicateStrategy, FileRule, FolderRule, OrganizeConfig

logger = logging.getLogger(__name__)

INVALID_NAME_CHARS = '<>:"/\\|?*'
TEMPLATE_TOKEN = re.compile(r"\{(OriginalName|JJJJ-MM|JJJJ|MM|TT)\}")


def render_name_template(
    template: str, original_name: str, date: Optional[datetime]
) -> str:
    """Substitute the fixed folder-name tokens in a template.

    Supported tokens: {OriginalName}, {JJJJ}, {MM}, {TT}, {JJJJ-MM}.
    Date tokens become empty strings when no date is known. Substitution is
    a single pass, so token-like text inside the original name stays as is.
    """
    values = {
        "OriginalName": original_name,
        "JJJJ-MM": date.strftime("%Y-%m") if date else "",
        "JJJJ": date.strftime("%Y") if date else "",
        "MM": date.strftime("%m") if date else "",
        "TT": date.strftime("%d") if date else "",
    }
    name = TEMPLATE_TOKEN.sub(lambda m: values[m.group(1)], template)

    for char in INVALID_NAME_CHARS:
        name = name.replace(char, "_")
    return name.strip()


def same_path(first: Path, second: Path) -> bool:
    """Case-insensitive path comparison."""
    return normalize_path(first).rstrip("/") == normalize_path(second).rstrip("/")


def is_inside(path: Path, folder: Path) -> bool:
    """True if path lies strictly below folder."""
    prefix = normalize_path(folder).rstrip("/") + "/"
    return normalize_path(path).startswith(prefix)


@dataclass(frozen=True)
class FileMatch:
    """Outcome of file rule evaluation."""

    rule: Optional[FileRule]
    destination_dir: Path
    strategy: DuplicateStrategy

    @property
    def is_default(self) -> bool:
        return self.rule is None

    @property
    def rule_name(self) -> str:
        return self.rule.name if self.rule else "default target"


@dataclass(frozen=True)
class FolderAction:
    """A rename or move chosen for a folder."""

    rule: FolderRule
    kind: str  # 'rename' or 'move'
    source: Path
    target: Path


class RuleEvaluator:
    """Evaluate ordered file and folder rules against candidates."""

    def __init__(
        self,
        config: OrganizeConfig,
        accessor: Optional[FileSystemAccessor] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the evaluator.

        Args:
            config: Immutable run configuration
            accessor: File system access (used for destination existence)
            clock: Returns the current time; injectable for tests
        """
        self.config = config
        self.accessor = accessor or FileSystemAccessor()
        self.clock = clock

    # File rules

    def find_file_rule(self, candidate: Candidate) -> Optional[FileRule]:
        """Return the first file rule matching the candidate, if any."""
        for rule in self.config.file_rules:
            if self.file_rule_matches(rule, candidate):
                logger.info(f"Matched rule '{rule.name}' for {candidate.name}")
                return rule
        return None

    def file_rule_matches(self, rule: FileRule, candidate: Candidate) -> bool:
        """Check a single rule; filters are ANDed and short-circuit."""
        if rule.is_inert:
            logger.debug(f"Rule '{rule.name}' has no filters, skipping")
            return False

        if rule.extensions and candidate.extension.lower() not in rule.extensions:
            return False

        if rule.name_patterns and not matches_any(candidate.name, rule.name_patterns):
            return False

        if rule.older_than_days or rule.newer_than_days:
            date = candidate.effective_date
            if date is None:
                logger.warning(
                    f"No date available for {candidate.path}, "
                    f"age filter of rule '{rule.name}' fails"
                )
                return False
            if rule.older_than_days and not self._is_older_than(
                date, rule.older_than_days
            ):
                return False
            if rule.newer_than_days and not self._is_newer_than(
                date, rule.newer_than_days
            ):
                return False

        if not rule.is_executable:
            logger.info(
                f"Rule '{rule.name}' uses unsupported action '{rule.action}', ignored"
            )
            return False

        return True

    def evaluate_file(self, candidate: Candidate, root: Path) -> FileMatch:
        """Select a rule and compute the destination folder for a file.

        Args:
            candidate: File snapshot
            root: Root directory being organized

        Returns:
            FileMatch with destination folder and effective duplicate strategy
        """
        rule = self.find_file_rule(candidate)

        if rule is None:
            destination = Path(root) / self.config.default_target_folder
            logger.debug(f"No rule matched {candidate.name}, using {destination}")
            return FileMatch(
                rule=None,
                destination_dir=destination,
                strategy=self.config.global_duplicate_handling,
            )

        destination = Path(root)
        if rule.target_folder:
            destination = destination / rule.target_folder
        if rule.sub_folder:
            destination = destination / rule.sub_folder
        if rule.organize_by_date:
            date = candidate.effective_date
            if date is None:
                logger.warning(
                    f"No date available for {candidate.path}, "
                    "skipping date folders"
                )
            else:
                destination = destination / date.strftime("%Y") / date.strftime("%Y-%m")

        strategy = rule.duplicate_handling or self.config.global_duplicate_handling
        return FileMatch(rule=rule, destination_dir=destination, strategy=strategy)

    # Folder rules

    def evaluate_folder(self, candidate: Candidate, root: Path) -> Optional[FolderAction]:
        """Find the first folder rule that fires for a folder.

        Within one rule the rename sub-rule is tested first; when it fires
        the move sub-rule of the same rule is not considered.

        Args:
            candidate: Folder snapshot
            root: Root directory being organized; move targets resolve here

        Returns:
            FolderAction, or None when no rule fires
        """
        for rule in self.config.folder_rules:
            action = self._rename_action(rule, candidate)
            if action is None:
                action = self._move_action(rule, candidate, Path(root))
            if action is not None:
                logger.info(
                    f"Folder rule '{rule.name}' fires {action.kind} for {candidate.path}"
                )
                return action
        return None

    def _rename_action(
        self, rule: FolderRule, candidate: Candidate
    ) -> Optional[FolderAction]:
        if not rule.rename_pattern or not matches(candidate.name, rule.rename_pattern):
            return None
        if rule.rename_older_than_days and not self._folder_old_enough(
            candidate, rule.rename_older_than_days
        ):
            return None

        new_name = render_name_template(
            rule.new_name_template, candidate.name, candidate.effective_date
        )
        if not new_name or new_name == candidate.name:
            return None

        return FolderAction(
            rule=rule,
            kind="rename",
            source=candidate.path,
            target=candidate.path.parent / new_name,
        )

    def _move_action(
        self, rule: FolderRule, candidate: Candidate, root: Path
    ) -> Optional[FolderAction]:
        if not rule.move_pattern or not rule.target_folder:
            return None
        if not matches(candidate.name, rule.move_pattern):
            return None
        if rule.move_older_than_days and not self._folder_old_enough(
            candidate, rule.move_older_than_days
        ):
            return None

        target = root / rule.target_folder / candidate.name

        if same_path(candidate.path, target):
            logger.warning(f"Folder {candidate.path} is already at its target")
            return None
        if is_inside(target, candidate.path):
            logger.warning(
                f"Cannot move {candidate.path} into itself ({target}), skipping"
            )
            return None
        if self.accessor.exists(target):
            logger.warning(f"Target {target} already exists, not moving {candidate.path}")
            return None

        return FolderAction(rule=rule, kind="move", source=candidate.path, target=target)

    # Age helpers

    def _folder_old_enough(self, candidate: Candidate, days: int) -> bool:
        date = candidate.effective_date
        if date is None:
            logger.warning(f"No date available for folder {candidate.path}")
            return False
        return self._is_older_than(date, days)

    def _is_older_than(self, date: datetime, days: int) -> bool:
        """Strictly older than the cutoff; exactly `days` old does not count."""
        return date < self.clock() - timedelta(days=days)

    def _is_newer_than(self, date: datetime, days: int) -> bool:
        return date >= self.clock() - timedelta(days=days)
