"""
Test module for the main application controller.
"""

import json
import logging
from pathlib import Path

import pytest

from file_organizer.app import (
    FileOrganizerApp,
    create_argument_parser,
    main,
    organize,
)
from file_organizer.utils.config_manager import ENV_MAPPINGS, ENV_PREFIX
from file_organizer.utils.error_handler import ConfigurationError, NoDirectoriesError

from conftest import make_file, tree_state


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Drop environment overrides and restore root logging afterwards."""
    for suffix in ENV_MAPPINGS:
        monkeypatch.delenv(ENV_PREFIX + suffix, raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)


@pytest.fixture
def workspace(tmp_path):
    """A configuration file plus two populated root directories."""
    downloads = tmp_path / "Downloads"
    desktop = tmp_path / "Desktop"
    make_file(downloads / "report.pdf", "pdf")
    make_file(downloads / "notes.xyz", "notes")
    make_file(desktop / "photo.jpg", "jpg")
    (downloads / "old").mkdir()

    config = {
        "directories": [str(downloads)],
        "globalExclusions": {"filePatterns": ["*.tmp"], "folderPatterns": ["*/private"]},
        "fileRules": [
            {"name": "Documents", "extensions": [".pdf"], "targetFolder": "Dokumente"}
        ],
        "logging": {"level": "INFO", "file": str(tmp_path / "logs" / "organizer.log")},
    }
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(config))

    return {
        "config": config_file,
        "downloads": downloads,
        "desktop": desktop,
        "tmp": tmp_path,
    }


class TestFileOrganizerApp:
    """Test cases for FileOrganizerApp class."""

    def test_app_initialization(self, workspace):
        app = FileOrganizerApp(config_file=str(workspace["config"]))
        assert not app._is_initialized

        app.initialize()

        assert app._is_initialized
        assert len(app.config.file_rules) == 1

    def test_initialize_invalid_config(self, tmp_path):
        broken = tmp_path / "broken.json"
        broken.write_text("{")
        app = FileOrganizerApp(config_file=str(broken))

        with pytest.raises(ConfigurationError):
            app.initialize()

    def test_directories_from_configuration(self, workspace):
        app = FileOrganizerApp(config_file=str(workspace["config"]))
        app.initialize()

        assert app.resolve_directories() == [workspace["downloads"]]

    def test_explicit_directories_win(self, workspace):
        app = FileOrganizerApp(config_file=str(workspace["config"]))
        app.initialize()

        selected = app.resolve_directories([str(workspace["desktop"])])

        assert selected == [workspace["desktop"]]

    def test_discovery_when_nothing_configured(self, tmp_path, mocker):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("fileRules: []\n")
        home = tmp_path / "home"
        home.mkdir()
        app = FileOrganizerApp(config_file=str(config_file))
        app.initialize()
        discover = mocker.patch.object(
            app.accessor, "discover_safe_roots", return_value=[home]
        )

        assert app.resolve_directories() == [home]
        discover.assert_called_once()

    def test_filters_missing_excluded_and_duplicates(self, workspace):
        private = workspace["tmp"] / "private"
        private.mkdir()
        app = FileOrganizerApp(config_file=str(workspace["config"]))
        app.initialize()

        selected = app.resolve_directories(
            [
                str(workspace["desktop"]),
                str(workspace["desktop"]) + "/",
                str(workspace["tmp"] / "missing"),
                str(private),
            ]
        )

        assert selected == [workspace["desktop"]]

    def test_no_directories_left(self, workspace):
        app = FileOrganizerApp(config_file=str(workspace["config"]))
        app.initialize()

        with pytest.raises(NoDirectoriesError):
            app.resolve_directories([str(workspace["tmp"] / "missing")])

    def test_run_organizes_roots(self, workspace):
        app = FileOrganizerApp(config_file=str(workspace["config"]))

        summary = app.run(delete_empty_folders=True)

        downloads = workspace["downloads"]
        assert (downloads / "Dokumente" / "report.pdf").exists()
        assert (downloads / "Sonstiges" / "notes.xyz").exists()
        assert not (downloads / "old").exists()
        assert summary.files_moved == 2
        assert summary.folders_removed == 1
        assert summary.roots_processed == 1

    def test_run_preview(self, workspace):
        before = tree_state(workspace["downloads"])
        app = FileOrganizerApp(config_file=str(workspace["config"]))

        summary = app.run(preview=True, delete_empty_folders=True)

        assert tree_state(workspace["downloads"]) == before
        assert summary.preview
        assert summary.files_moved == 2
        assert summary.folders_removed == 1

    def test_organize_function(self, workspace):
        summary = organize(
            str(workspace["config"]), directories=[str(workspace["desktop"])]
        )

        assert (workspace["desktop"] / "Sonstiges" / "photo.jpg").exists()
        assert (workspace["downloads"] / "report.pdf").exists()
        assert summary.files_moved == 1


class TestCommandLine:
    """Test the argument parser and entry point."""

    def test_argument_parser(self):
        parser = create_argument_parser()

        args = parser.parse_args(
            [
                "--config",
                "rules.yaml",
                "-d",
                "/a",
                "--directory",
                "/b",
                "--delete-empty-folders",
                "--dry-run",
            ]
        )

        assert args.config == "rules.yaml"
        assert args.directories == ["/a", "/b"]
        assert args.delete_empty_folders
        assert args.preview

    def test_config_is_required(self):
        with pytest.raises(SystemExit) as excinfo:
            create_argument_parser().parse_args([])
        assert excinfo.value.code == 2

    def test_main_success(self, workspace):
        log_file = workspace["tmp"] / "run.log"

        with pytest.raises(SystemExit) as excinfo:
            main(["--config", str(workspace["config"]), "--log-file", str(log_file)])

        assert excinfo.value.code == 0
        assert (workspace["downloads"] / "Dokumente" / "report.pdf").exists()
        assert "Organization complete" in log_file.read_text()

    def test_main_preview_changes_nothing(self, workspace):
        before = tree_state(workspace["downloads"])

        with pytest.raises(SystemExit) as excinfo:
            main(
                [
                    "--config",
                    str(workspace["config"]),
                    "--preview",
                    "--delete-empty-folders",
                    "--log-file",
                    str(workspace["tmp"] / "run.log"),
                ]
            )

        assert excinfo.value.code == 0
        assert tree_state(workspace["downloads"]) == before

    def test_main_missing_config(self, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            main(
                [
                    "--config",
                    str(tmp_path / "missing.json"),
                    "--log-file",
                    str(tmp_path / "run.log"),
                ]
            )

        assert excinfo.value.code == 1

    def test_main_no_directories(self, workspace):
        with pytest.raises(SystemExit) as excinfo:
            main(
                [
                    "--config",
                    str(workspace["config"]),
                    "-d",
                    str(workspace["tmp"] / "missing"),
                    "--log-file",
                    str(workspace["tmp"] / "run.log"),
                ]
            )

        assert excinfo.value.code == 1

    def test_main_interrupted(self, workspace, mocker):
        mocker.patch.object(FileOrganizerApp, "run", side_effect=KeyboardInterrupt)

        with pytest.raises(SystemExit) as excinfo:
            main(
                [
                    "--config",
                    str(workspace["config"]),
                    "--log-file",
                    str(workspace["tmp"] / "run.log"),
                ]
            )

        assert excinfo.value.code == 1
