"""
Error handling for the file organization system.
Provides error categorization, error records and the organizer's exceptions.
"""

import logging
import traceback
from typing import Any, Dict, List
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class OrganizerError(Exception):
    """Base class for organizer failures."""


class ConfigurationError(OrganizerError):
    """The configuration document is unreadable or invalid."""


class NoDirectoriesError(OrganizerError):
    """No eligible directory remained after filtering."""


class OrganizationError(OrganizerError):
    """An unexpected failure while organizing a root directory."""

    def __init__(self, root: str, cause: Exception):
        super().__init__(f"Organizing {root} failed: {cause}")
        self.root = root
        self.cause = cause


class ErrorType(Enum):
    """Categorization of different error types."""

    FILE_ACCESS = "file_access"
    PATH_RESOLUTION = "path_resolution"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorRecord:
    """Record of an error occurrence."""

    def __init__(
        self,
        error: Exception,
        context: str,
        error_type: ErrorType,
        severity: ErrorSeverity,
    ):
        self.error = error
        self.context = context
        self.error_type = error_type
        self.severity = severity
        self.timestamp = datetime.now()
        self.traceback = traceback.format_exc()

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "error": str(self.error),
            "context": self.context,
            "error_type": self.error_type.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "traceback": self.traceback,
        }


class ErrorHandler:
    """Categorize and record errors that abandon a single item.

    Nothing here retries: a failed file or folder stays where it is and the
    run continues with the next item.
    """

    def __init__(self):
        self.logger = logging.getLogger("error_handler")
        self.error_history: List[ErrorRecord] = []
        self.error_counts: Dict[ErrorType, int] = {
            error_type: 0 for error_type in ErrorType
        }

    def handle_error(self, error: Exception, context: str) -> ErrorRecord:
        """
        Record and log an error.

        Args:
            error: The exception to handle
            context: Context describing where the error occurred

        Returns:
            The stored ErrorRecord
        """
        error_type = self._categorize_error(error)
        severity = self._determine_severity(error, error_type)

        error_record = ErrorRecord(error, context, error_type, severity)
        self.error_history.append(error_record)
        self.error_counts[error_type] += 1

        if severity == ErrorSeverity.CRITICAL:
            self.logger.critical(f"Error in {context}: {error}")
        elif isinstance(error, FileNotFoundError):
            self.logger.warning(f"File not found in {context}: {error}")
        elif isinstance(error, PermissionError):
            self.logger.error(f"Permission denied in {context}: {error}")
        else:
            self.logger.error(f"Error in {context}: {error}")
        self.logger.debug(f"Traceback: {error_record.traceback}")

        return error_record

    def _categorize_error(self, error: Exception) -> ErrorType:
        """Categorize the error type."""
        if isinstance(error, ConfigurationError):
            return ErrorType.CONFIGURATION
        elif isinstance(error, OSError):
            return ErrorType.FILE_ACCESS
        elif isinstance(error, (ValueError, TypeError)):
            return ErrorType.PATH_RESOLUTION
        else:
            return ErrorType.UNKNOWN

    def _determine_severity(
        self, error: Exception, error_type: ErrorType
    ) -> ErrorSeverity:
        """Determine error severity based on error type and specifics."""
        if error_type == ErrorType.CONFIGURATION:
            return ErrorSeverity.CRITICAL
        elif error_type == ErrorType.FILE_ACCESS:
            if isinstance(error, PermissionError):
                return ErrorSeverity.HIGH
            else:
                return ErrorSeverity.MEDIUM
        elif error_type == ErrorType.PATH_RESOLUTION:
            return ErrorSeverity.LOW
        else:
            return ErrorSeverity.HIGH

    @property
    def total_errors(self) -> int:
        return len(self.error_history)

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get statistics about errors encountered."""
        return {
            "total_errors": len(self.error_history),
            "error_counts_by_type": {
                error_type.value: count
                for error_type, count in self.error_counts.items()
            },
            "recent_errors": [error.to_dict() for error in self.error_history[-10:]],
        }
