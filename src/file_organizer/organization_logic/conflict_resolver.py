"""
Duplicate resolution when a file's destination already exists.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from file_organizer.file_access.manipulator import FileManipulator
from .rules import DuplicateStrategy

logger = logging.getLogger(__name__)


@dataclass
class DuplicateResolution:
    """Result of duplicate resolution."""

    strategy: DuplicateStrategy
    final_path: Optional[Path]
    reason: str
    moved: bool = False


def timestamped_name(target: Path, moment: datetime) -> Path:
    """Build '{base}_{yyyyMMddHHmmssfff}{ext}' next to the target."""
    stamp = moment.strftime("%Y%m%d%H%M%S") + f"{moment.microsecond // 1000:03d}"
    return target.parent / f"{target.stem}_{stamp}{target.suffix}"


class DuplicateResolver:
    """Resolve collisions between an incoming file and an existing one.

    Every branch performs at most one move or replace call through the
    manipulator. A failure there leaves the source file where it is.
    """

    def __init__(
        self,
        manipulator: FileManipulator,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize duplicate resolver.

        Args:
            manipulator: Executes the chosen move/replace
            clock: Source of the timestamp used for renamed copies
        """
        self.manipulator = manipulator
        self.clock = clock

    def resolve(
        self, strategy: DuplicateStrategy, source: Path, target: Path
    ) -> DuplicateResolution:
        """Apply a duplicate strategy.

        Args:
            strategy: Effective strategy for this file
            source: Incoming file
            target: Existing destination file

        Returns:
            DuplicateResolution describing what happened
        """
        source, target = Path(source), Path(target)

        if strategy == DuplicateStrategy.SKIP:
            logger.info(f"Duplicate skipped: {target} already exists, {source} kept")
            return DuplicateResolution(strategy, None, "skipped")

        elif strategy == DuplicateStrategy.RENAME_WITH_TIMESTAMP:
            renamed = timestamped_name(target, self.clock())
            if self.manipulator.accessor.exists(renamed):
                logger.warning(
                    f"Timestamped name {renamed.name} is taken too, skipping {source}"
                )
                return DuplicateResolution(strategy, None, "timestamped name taken")

            logger.info(f"Duplicate renamed: {source} -> {renamed.name}")
            moved = self.manipulator.move_file(source, renamed)
            return DuplicateResolution(strategy, renamed, "renamed", moved=moved)

        elif strategy == DuplicateStrategy.OVERWRITE:
            logger.warning(f"Overwriting existing file: {target}")
            moved = self.manipulator.move_file(source, target, overwrite=True)
            return DuplicateResolution(strategy, target, "overwritten", moved=moved)

        elif strategy == DuplicateStrategy.ASK:
            logger.warning(
                f"Interactive duplicate handling is not available in unattended "
                f"runs, skipping {source}"
            )
            return DuplicateResolution(strategy, None, "interactive mode unavailable")

        else:
            logger.warning(f"Unknown duplicate strategy '{strategy}', skipping {source}")
            return DuplicateResolution(
                DuplicateStrategy.SKIP, None, "unknown strategy"
            )
