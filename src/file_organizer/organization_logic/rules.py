"""
Typed rule and configuration objects for the organizer.

Everything here is built once from the parsed configuration document and is
read-only for the rest of the run.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from file_organizer.utils.path_matcher import PathLike, is_excluded

logger = logging.getLogger(__name__)

DEFAULT_TARGET_FOLDER = "Sonstiges"
DEFAULT_NAME_TEMPLATE = "{OriginalName}"
EXECUTABLE_ACTION = "move"


class DuplicateStrategy(Enum):
    """What to do when a file's destination already exists."""

    SKIP = "Skip"
    RENAME_WITH_TIMESTAMP = "RenameWithTimestamp"
    OVERWRITE = "Overwrite"
    ASK = "Ask"

    @classmethod
    def parse(
        cls, value: Any, default: Optional["DuplicateStrategy"] = None
    ) -> "DuplicateStrategy":
        """Parse a strategy name case-insensitively.

        Args:
            value: Strategy name from the configuration (or an instance)
            default: Returned when value is empty

        Returns:
            Matching strategy, or SKIP for unknown names
        """
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            return default if default is not None else cls.SKIP

        wanted = str(value).strip().lower()
        for strategy in cls:
            if strategy.value.lower() == wanted:
                return strategy

        logger.warning(f"Unknown duplicate handling '{value}', falling back to Skip")
        return cls.SKIP


def _clean_patterns(patterns: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    if not patterns:
        return ()
    return tuple(str(p) for p in patterns if p is not None and str(p).strip())


def _normalize_extension(extension: Any) -> str:
    ext = str(extension).strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def _positive_days(value: Any) -> Optional[int]:
    """Day thresholds of zero or less disable the filter."""
    if value is None or value == "":
        return None
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"day count must be a whole number, got {value}")
    days = int(value)
    return days if days > 0 else None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ExclusionSet:
    """Glob patterns excluding files and folders from every action."""

    file_patterns: Tuple[str, ...] = ()
    folder_patterns: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ExclusionSet":
        data = data or {}
        return cls(
            file_patterns=_clean_patterns(data.get("filePatterns")),
            folder_patterns=_clean_patterns(data.get("folderPatterns")),
        )

    def excludes_file(self, path: PathLike) -> bool:
        """Files are tested against both file and folder patterns."""
        return is_excluded(path, self.file_patterns) or is_excluded(
            path, self.folder_patterns
        )

    def excludes_folder(self, path: PathLike) -> bool:
        return is_excluded(path, self.folder_patterns)


@dataclass(frozen=True)
class FileRule:
    """A single ordered file rule.

    Filters (extensions, name patterns, age thresholds) are combined with AND.
    A rule that declares none of them is inert and never matches.
    """

    name: str = "Unnamed Rule"
    extensions: Tuple[str, ...] = ()
    name_patterns: Tuple[str, ...] = ()
    older_than_days: Optional[int] = None
    newer_than_days: Optional[int] = None
    action: str = EXECUTABLE_ACTION
    target_folder: Optional[str] = None
    sub_folder: Optional[str] = None
    organize_by_date: bool = False
    duplicate_handling: Optional[DuplicateStrategy] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "FileRule":
        """Create a rule from a configuration mapping."""
        extensions = tuple(
            ext
            for ext in (_normalize_extension(e) for e in data.get("extensions") or [])
            if ext
        )
        raw_strategy = data.get("duplicateHandling")
        return cls(
            name=str(data.get("name") or f"File rule {index + 1}"),
            extensions=extensions,
            name_patterns=_clean_patterns(data.get("namePatterns")),
            older_than_days=_positive_days(data.get("olderThanDays")),
            newer_than_days=_positive_days(data.get("newerThanDays")),
            action=_optional_text(data.get("action")) or EXECUTABLE_ACTION,
            target_folder=_optional_text(data.get("targetFolder")),
            sub_folder=_optional_text(data.get("subFolder")),
            organize_by_date=bool(data.get("organizeByDate", False)),
            duplicate_handling=(
                DuplicateStrategy.parse(raw_strategy)
                if _optional_text(raw_strategy)
                else None
            ),
        )

    @property
    def is_inert(self) -> bool:
        return not (
            self.extensions
            or self.name_patterns
            or self.older_than_days
            or self.newer_than_days
        )

    @property
    def is_executable(self) -> bool:
        return self.action.lower() == EXECUTABLE_ACTION


@dataclass(frozen=True)
class FolderRule:
    """A folder rule with independent rename and move sub-rules."""

    name: str = "Unnamed Folder Rule"
    rename_pattern: Optional[str] = None
    rename_older_than_days: Optional[int] = None
    new_name_template: str = DEFAULT_NAME_TEMPLATE
    move_pattern: Optional[str] = None
    move_older_than_days: Optional[int] = None
    target_folder: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "FolderRule":
        return cls(
            name=str(data.get("name") or f"Folder rule {index + 1}"),
            rename_pattern=_optional_text(data.get("renamePattern")),
            rename_older_than_days=_positive_days(data.get("renameOlderThanDays")),
            new_name_template=(
                _optional_text(data.get("newNameTemplate")) or DEFAULT_NAME_TEMPLATE
            ),
            move_pattern=_optional_text(data.get("movePattern")),
            move_older_than_days=_positive_days(data.get("moveOlderThanDays")),
            target_folder=_optional_text(data.get("targetFolder")),
        )


@dataclass(frozen=True)
class OrganizeConfig:
    """Immutable run context shared by every component."""

    directories: Tuple[str, ...] = ()
    global_exclusions: ExclusionSet = field(default_factory=ExclusionSet)
    global_duplicate_handling: DuplicateStrategy = DuplicateStrategy.SKIP
    file_rules: Tuple[FileRule, ...] = ()
    default_target_folder: str = DEFAULT_TARGET_FOLDER
    folder_rules: Tuple[FolderRule, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrganizeConfig":
        """Create the run context from a parsed configuration document.

        Args:
            data: Configuration mapping using the documented camelCase keys

        Returns:
            OrganizeConfig instance
        """
        return cls(
            directories=_clean_patterns(data.get("directories")),
            global_exclusions=ExclusionSet.from_dict(data.get("globalExclusions")),
            global_duplicate_handling=DuplicateStrategy.parse(
                data.get("globalDuplicateHandling")
            ),
            file_rules=tuple(
                FileRule.from_dict(rule, i)
                for i, rule in enumerate(data.get("fileRules") or [])
            ),
            default_target_folder=(
                _optional_text(data.get("defaultTargetFolder"))
                or DEFAULT_TARGET_FOLDER
            ),
            folder_rules=tuple(
                FolderRule.from_dict(rule, i)
                for i, rule in enumerate(data.get("folderRules") or [])
            ),
        )
