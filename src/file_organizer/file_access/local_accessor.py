import os
import shutil
import platform
from pathlib import Path
from datetime import datetime
from typing import List, Optional, Union
import logging
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """Snapshot of a file or folder taken once before rule evaluation."""

    path: Path
    name: str
    extension: str
    modified_time: Optional[datetime]
    created_time: Optional[datetime]
    is_dir: bool

    @property
    def effective_date(self) -> Optional[datetime]:
        """Last write time, falling back to creation time."""
        if self.modified_time is not None:
            return self.modified_time
        return self.created_time


class FileSystemAccessor:
    """Local file system primitives used by the organizer.

    Every mutating call is a single OS operation; callers decide whether
    to invoke it at all (exclusions, preview mode).
    """

    def exists(self, path: Union[str, Path]) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Union[str, Path]) -> bool:
        return Path(path).is_dir()

    def list_dir(self, path: Union[str, Path]) -> List[Path]:
        """List the immediate children of a directory, sorted by name."""
        return sorted(Path(path).iterdir(), key=lambda p: p.name.lower())

    def list_files(self, path: Union[str, Path]) -> List[Path]:
        """List immediate file children of a directory (non-recursive)."""
        return [p for p in self.list_dir(path) if p.is_file()]

    def walk_dirs(
        self, root: Union[str, Path], skip=None, onerror=None
    ) -> List[Path]:
        """List all descendant directories of root, parents before children.

        Args:
            root: Directory to walk
            skip: Optional predicate; directories it accepts are left out
                together with their whole subtree
            onerror: Called with the OSError of a directory that cannot be
                listed; by default the error is logged

        Returns:
            List of directory paths (root itself not included)
        """
        found = []
        for current, dirnames, _ in os.walk(
            root, topdown=True, onerror=onerror or self._log_walk_error
        ):
            kept = []
            for dirname in sorted(dirnames, key=str.lower):
                dir_path = Path(current) / dirname
                if skip is not None and skip(dir_path):
                    continue
                kept.append(dirname)
                found.append(dir_path)
            # Prune os.walk in place
            dirnames[:] = kept
        return found

    @staticmethod
    def _log_walk_error(error: OSError):
        logger.error(f"Cannot list directory {error.filename}: {error}")

    def create_dir(self, path: Union[str, Path]):
        Path(path).mkdir(parents=True, exist_ok=True)

    def move_file(self, source: Union[str, Path], target: Union[str, Path]):
        shutil.move(str(source), str(target))

    def replace_file(self, source: Union[str, Path], target: Union[str, Path]):
        """Atomically replace target with source."""
        os.replace(str(source), str(target))

    def move_dir(self, source: Union[str, Path], target: Union[str, Path]):
        shutil.move(str(source), str(target))

    def rename_dir(self, old: Union[str, Path], new: Union[str, Path]):
        os.rename(str(old), str(new))

    def delete_if_empty(self, path: Union[str, Path]) -> bool:
        """Remove a directory only if it has no entries.

        Returns:
            True if the directory was removed
        """
        directory = Path(path)
        if any(directory.iterdir()):
            return False
        directory.rmdir()
        return True

    def snapshot(self, path: Union[str, Path]) -> Candidate:
        """Capture the metadata used for rule evaluation.

        Args:
            path: File or folder path

        Returns:
            Candidate snapshot; timestamps are None when they cannot be read
        """
        entry = Path(path)
        modified_time = None
        created_time = None
        is_dir = False

        try:
            stat = entry.stat()
            is_dir = entry.is_dir()
            modified_time = datetime.fromtimestamp(stat.st_mtime)
            created_time = datetime.fromtimestamp(
                getattr(stat, "st_birthtime", stat.st_ctime)
            )
        except (OSError, ValueError, OverflowError) as e:
            logger.warning(f"Could not read timestamps for {entry}: {e}")

        return Candidate(
            path=entry,
            name=entry.name,
            extension="" if is_dir else entry.suffix.lower(),
            modified_time=modified_time,
            created_time=created_time,
            is_dir=is_dir,
        )

    def discover_safe_roots(self) -> List[Path]:
        """Find default directories to organize.

        The user's home directory plus fixed drives other than the system
        drive (Windows only).
        """
        roots = [Path.home()]

        if platform.system() != "Windows":
            return roots

        system_drive = os.environ.get("SystemDrive", "C:").rstrip("\\/").lower()
        try:
            partitions = psutil.disk_partitions(all=False)
        except Exception as e:
            logger.warning(f"Could not enumerate drives: {e}")
            return roots

        for partition in partitions:
            if "fixed" not in partition.opts.lower():
                continue
            mountpoint = partition.mountpoint
            if mountpoint.rstrip("\\/").lower() == system_drive:
                continue
            roots.append(Path(mountpoint))

        return roots
