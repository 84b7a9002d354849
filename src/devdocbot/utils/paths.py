"""Project path helpers for DevDocBot."""

from __future__ import annotations

from pathlib import Path

from devdocbot.vectorstore.schema import SNAPSHOT_FILENAME


CONFIG_FILENAMES = (
    "devdocbot.config.yaml",
    "devdocbot.config.yml",
    "devdocbot.config.json",
)


def find_config_file(project_root: Path) -> Path | None:
    """First existing config file in project_root, in CONFIG_FILENAMES order."""
    for name in CONFIG_FILENAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start directory to find project root.

    Project root is identified by a devdocbot config file
    or a .devdocbot/ directory.
    """
    current = (start or Path.cwd()).resolve()
    for directory in [current, *current.parents]:
        if find_config_file(directory) is not None:
            return directory
        if (directory / ".devdocbot").is_dir():
            return directory
    return None


def get_output_dir(project_root: Path, output_dir: str) -> Path:
    """Resolve the configured output directory against the project root."""
    path = Path(output_dir)
    return path if path.is_absolute() else project_root / path


def get_snapshot_path(project_root: Path, output_dir: str) -> Path:
    """Fixed location of the vector store snapshot under the output dir."""
    return get_output_dir(project_root, output_dir) / SNAPSHOT_FILENAME
