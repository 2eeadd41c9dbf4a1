"""
Main application controller for the file organizer.
Loads the configuration, selects root directories and runs the organizer.
"""

import sys
import argparse
import logging
import traceback
from pathlib import Path
from typing import Optional, List, Sequence

from dotenv import load_dotenv

from file_organizer.file_access.local_accessor import FileSystemAccessor
from file_organizer.organization_logic.organizer import (
    DirectoryOrganizer,
    OrganizationSummary,
)
from file_organizer.organization_logic.rules import OrganizeConfig
from file_organizer.utils.config_manager import ConfigManager
from file_organizer.utils.error_handler import (
    ConfigurationError,
    ErrorHandler,
    NoDirectoriesError,
    OrganizerError,
)
from file_organizer.utils.logging_config import setup_logging
from file_organizer.utils.path_matcher import normalize_path

logger = logging.getLogger(__name__)


class FileOrganizerApp:
    """Application controller that wires configuration and organizer."""

    def __init__(
        self,
        config_file: str,
        accessor: Optional[FileSystemAccessor] = None,
    ):
        """Initialize the application.

        Args:
            config_file: Path to the JSON or YAML configuration document
            accessor: File system primitives (defaults to the local disk)
        """
        self.config_file = config_file
        self.accessor = accessor or FileSystemAccessor()
        self.config_manager: Optional[ConfigManager] = None
        self.config: Optional[OrganizeConfig] = None
        self.error_handler = ErrorHandler()
        self._is_initialized = False

    def initialize(
        self,
        log_file: Optional[str] = None,
        log_level: Optional[str] = None,
        configure_logging: bool = False,
    ):
        """Load configuration; optionally configure logging from it.

        Raises:
            ConfigurationError: If the configuration cannot be loaded
        """
        if self._is_initialized:
            return

        logger.info(f"Loading configuration from {self.config_file}...")
        self.config_manager = ConfigManager(config_file=Path(self.config_file))
        self.config = self.config_manager.to_organize_config()

        if configure_logging:
            self._setup_logging(log_file, log_level)

        logger.info(
            f"Loaded {len(self.config.file_rules)} file rules and "
            f"{len(self.config.folder_rules)} folder rules"
        )
        self._is_initialized = True

    def _setup_logging(self, log_file: Optional[str], log_level: Optional[str]):
        """Configure logging based on application settings."""
        log_config = self.config_manager.get("logging", {})
        setup_logging(
            log_file=log_file or log_config.get("file"),
            log_level=log_level or log_config.get("level", "INFO"),
            log_format=log_config.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
        )

    def resolve_directories(
        self, directories: Optional[Sequence[str]] = None
    ) -> List[Path]:
        """Choose the root directories for this run.

        Precedence: explicit list, then the configuration's directories, then
        automatically discovered safe roots. Missing or excluded entries are
        dropped.

        Raises:
            NoDirectoriesError: If nothing is left after filtering
        """
        if directories:
            source, candidates = "command line", [Path(d) for d in directories]
        elif self.config.directories:
            source, candidates = "configuration", [
                Path(d) for d in self.config.directories
            ]
        else:
            source, candidates = "discovery", self.accessor.discover_safe_roots()

        logger.info(f"Using directories from {source}")

        selected = []
        seen = set()
        for directory in candidates:
            directory = directory.expanduser()
            key = normalize_path(directory).rstrip("/")
            if key in seen:
                continue
            seen.add(key)

            if not self.accessor.is_dir(directory):
                logger.warning(f"Directory not found, skipping: {directory}")
                continue
            if self.config.global_exclusions.excludes_folder(directory):
                logger.warning(f"Directory excluded, skipping: {directory}")
                continue
            selected.append(directory)

        if not selected:
            raise NoDirectoriesError("No eligible directories to organize")

        for directory in selected:
            logger.info(f"  - {directory}")
        return selected

    def run(
        self,
        directories: Optional[Sequence[str]] = None,
        delete_empty_folders: bool = False,
        preview: bool = False,
    ) -> OrganizationSummary:
        """Run the organizer over all selected roots.

        Raises:
            OrganizerError: On configuration failure, no directories, or an
                unexpected failure while organizing a root
        """
        if not self._is_initialized:
            self.initialize()

        roots = self.resolve_directories(directories)

        if preview:
            logger.info("PREVIEW MODE: actions are logged but not performed")

        organizer = DirectoryOrganizer(
            self.config,
            dry_run=preview,
            accessor=self.accessor,
            error_handler=self.error_handler,
        )
        organizer.organize(roots)

        if delete_empty_folders:
            organizer.remove_empty_folders(roots)

        return organizer.log_summary()


def organize(
    config_path: str,
    directories: Optional[Sequence[str]] = None,
    delete_empty_folders: bool = False,
    preview: bool = False,
) -> OrganizationSummary:
    """Organize directories according to a configuration file.

    Args:
        config_path: JSON or YAML configuration document
        directories: Explicit root directories (highest precedence)
        delete_empty_folders: Remove empty folders after organizing
        preview: Log actions without changing anything

    Returns:
        OrganizationSummary of the run
    """
    app = FileOrganizerApp(config_file=config_path)
    return app.run(
        directories=directories,
        delete_empty_folders=delete_empty_folders,
        preview=preview,
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Organize files and folders using ordered rules"
    )

    parser.add_argument(
        "--config", required=True, help="Path to configuration file (JSON or YAML)"
    )

    parser.add_argument(
        "--directory",
        "-d",
        action="append",
        dest="directories",
        help="Directory to organize (repeatable); overrides the configuration",
        default=None,
    )

    parser.add_argument(
        "--delete-empty-folders",
        action="store_true",
        help="Remove empty folders after organizing",
    )

    parser.add_argument(
        "--preview",
        "--dry-run",
        action="store_true",
        dest="preview",
        help="Preview changes without moving files",
    )

    parser.add_argument("--log-file", help="Append log lines to this file", default=None)

    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
        default=None,
    )

    return parser


def main(argv: Optional[Sequence[str]] = None):
    """Main entry point for the application."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    load_dotenv()

    log_level = "DEBUG" if args.verbose else args.log_level
    setup_logging(log_file=args.log_file, log_level=log_level or "INFO")

    app = FileOrganizerApp(config_file=args.config)

    try:
        app.initialize(
            log_file=args.log_file, log_level=log_level, configure_logging=True
        )
        app.run(
            directories=args.directories,
            delete_empty_folders=args.delete_empty_folders,
            preview=args.preview,
        )
        sys.exit(0)

    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        sys.exit(1)
    except NoDirectoriesError as e:
        logger.critical(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        sys.exit(1)
    except OrganizerError as e:
        logger.critical(f"Organization aborted: {e}")
        if args.verbose:
            traceback.print_exc()
        sys.exit(1)
    except Exception as e:
        logger.critical(f"Application failed: {e}")
        if args.verbose:
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
