"""Centralized path management for FilePrune files."""

from pathlib import Path

# Directory name for FilePrune outputs
FILEPRUNE_DIR = ".fileprune"

# File names within the .fileprune directory
CONFIG_FILE = "config.json"
RESULTS_FILE = "results.json"

# Project-level config files
TOML_CONFIG_FILE = "fileprune.toml"
TSCONFIG_FILE = "tsconfig.json"
JSCONFIG_FILE = "jsconfig.json"


def get_fileprune_dir(project_path: Path) -> Path:
    """Get the .fileprune directory path for a project."""
    return project_path / FILEPRUNE_DIR


def ensure_fileprune_dir(project_path: Path) -> Path:
    """Ensure .fileprune directory exists and return its path."""
    fileprune_dir = get_fileprune_dir(project_path)
    fileprune_dir.mkdir(parents=True, exist_ok=True)
    return fileprune_dir


def get_config_path(project_path: Path) -> Path:
    """Get the config.json path for a project."""
    return get_fileprune_dir(project_path) / CONFIG_FILE


def get_results_path(project_path: Path) -> Path:
    """Get the results.json path for a project."""
    return get_fileprune_dir(project_path) / RESULTS_FILE
