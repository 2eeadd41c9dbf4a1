"""
Unit tests for the error handler module.
"""

import pytest

from file_organizer.utils.error_handler import (
    ConfigurationError,
    ErrorHandler,
    ErrorRecord,
    ErrorSeverity,
    ErrorType,
    NoDirectoriesError,
    OrganizationError,
    OrganizerError,
)


class TestErrorHandler:
    """Test the ErrorHandler class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.error_handler = ErrorHandler()

    def test_error_categorization(self):
        """Test error type categorization."""
        categorize = self.error_handler._categorize_error

        assert categorize(FileNotFoundError("gone")) == ErrorType.FILE_ACCESS
        assert categorize(PermissionError("denied")) == ErrorType.FILE_ACCESS
        assert categorize(IsADirectoryError("dir")) == ErrorType.FILE_ACCESS
        assert categorize(ValueError("bad path")) == ErrorType.PATH_RESOLUTION
        assert categorize(TypeError("not a path")) == ErrorType.PATH_RESOLUTION
        assert categorize(ConfigurationError("broken")) == ErrorType.CONFIGURATION
        assert categorize(RuntimeError("other")) == ErrorType.UNKNOWN

    def test_severity(self):
        severity = self.error_handler._determine_severity

        assert (
            severity(PermissionError(), ErrorType.FILE_ACCESS) == ErrorSeverity.HIGH
        )
        assert (
            severity(FileNotFoundError(), ErrorType.FILE_ACCESS)
            == ErrorSeverity.MEDIUM
        )
        assert severity(ValueError(), ErrorType.PATH_RESOLUTION) == ErrorSeverity.LOW
        assert (
            severity(ConfigurationError(), ErrorType.CONFIGURATION)
            == ErrorSeverity.CRITICAL
        )
        assert severity(RuntimeError(), ErrorType.UNKNOWN) == ErrorSeverity.HIGH

    def test_handle_error_records(self, caplog):
        record = self.error_handler.handle_error(
            PermissionError("denied"), "moving /a to /b"
        )

        assert isinstance(record, ErrorRecord)
        assert record.context == "moving /a to /b"
        assert record.severity == ErrorSeverity.HIGH
        assert self.error_handler.total_errors == 1
        assert "Permission denied in moving /a to /b" in caplog.text

    def test_error_statistics(self):
        self.error_handler.handle_error(FileNotFoundError("a"), "first")
        self.error_handler.handle_error(FileNotFoundError("b"), "second")
        self.error_handler.handle_error(ValueError("c"), "third")

        stats = self.error_handler.get_error_statistics()

        assert stats["total_errors"] == 3
        assert stats["error_counts_by_type"]["file_access"] == 2
        assert stats["error_counts_by_type"]["path_resolution"] == 1
        assert stats["error_counts_by_type"]["unknown"] == 0
        assert [e["context"] for e in stats["recent_errors"]] == [
            "first",
            "second",
            "third",
        ]

    def test_recent_errors_limited(self):
        for i in range(15):
            self.error_handler.handle_error(OSError(str(i)), f"item {i}")

        recent = self.error_handler.get_error_statistics()["recent_errors"]

        assert len(recent) == 10
        assert recent[0]["error"] == "5"

    def test_record_to_dict(self):
        record = ErrorRecord(
            OSError("disk"), "cleanup", ErrorType.FILE_ACCESS, ErrorSeverity.MEDIUM
        )

        data = record.to_dict()
        assert data["error"] == "disk"
        assert data["error_type"] == "file_access"
        assert data["severity"] == "medium"
        assert "timestamp" in data


class TestOrganizerErrors:
    """Test the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(ConfigurationError, OrganizerError)
        assert issubclass(NoDirectoriesError, OrganizerError)
        assert issubclass(OrganizationError, OrganizerError)

    def test_organization_error_keeps_cause(self):
        cause = RuntimeError("boom")

        with pytest.raises(OrganizerError) as excinfo:
            raise OrganizationError("/data/root", cause)

        assert excinfo.value.root == "/data/root"
        assert excinfo.value.cause is cause
        assert "boom" in str(excinfo.value)
