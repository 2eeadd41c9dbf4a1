#!/usr/bin/env python3
"""
Demo script showing rule-based organization of a temporary directory.
"""

import json
import tempfile
from pathlib import Path

from file_organizer.app import organize
from file_organizer.utils.logging_config import setup_logging

# Set up logging
setup_logging(log_level="INFO")


def build_sample_tree(root: Path):
    """Create a few files and folders to organize."""
    for name in ["rechnung_2024.pdf", "holiday.jpg", "notes.txt", "random.bin"]:
        (root / name).write_text(f"content of {name}")
    (root / "Screenshots").mkdir()
    (root / "Screenshots" / "shot.png").write_text("png")
    (root / "empty").mkdir()


def demo(preview: bool):
    print(f"=== Organization Demo (preview={preview}) ===\n")

    with tempfile.TemporaryDirectory() as work_dir:
        root = Path(work_dir) / "inbox"
        root.mkdir()
        build_sample_tree(root)

        config_file = Path(work_dir) / "config.json"
        config_file.write_text(
            json.dumps(
                {
                    "fileRules": [
                        {
                            "name": "Invoices",
                            "namePatterns": ["rechnung*"],
                            "targetFolder": "Dokumente",
                            "subFolder": "Rechnungen",
                        },
                        {
                            "name": "Pictures",
                            "extensions": [".jpg"],
                            "targetFolder": "Bilder",
                        },
                        {
                            "name": "Text",
                            "extensions": [".txt"],
                            "targetFolder": "Dokumente",
                        },
                    ],
                    "folderRules": [
                        {
                            "renamePattern": "Screenshots",
                            "newNameTemplate": "{JJJJ} {OriginalName}",
                        }
                    ],
                }
            )
        )

        summary = organize(
            str(config_file),
            directories=[str(root)],
            delete_empty_folders=True,
            preview=preview,
        )

        print("\nResulting tree:")
        for path in sorted(root.rglob("*")):
            print(f"  {path.relative_to(root)}")
        print(f"\nSummary: {summary.to_dict()}")


if __name__ == "__main__":
    demo(preview=True)
    demo(preview=False)
