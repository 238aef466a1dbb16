"""YAML recurrence file loader and writer."""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from . import constants
from .errors import RecurrenceError
from .recurrence import Recurrence
from .schema import GlobalConfig, RecurrenceEntry, RecurrenceFile

logger = logging.getLogger(__name__)


def find_recurrences_location() -> Optional[tuple[str, Path]]:
    """
    Locate recurrence definitions (directory or file).

    Search order (highest to lowest priority):
    1. DATERECUR_DIR environment variable → directory mode
    2. DATERECUR_FILE environment variable → file mode
    3. recurrences/ directory in current directory → directory mode
    4. recurrences.yaml in current directory → file mode

    Returns:
        Tuple of ("dir", Path) or ("file", Path), or None if not found
    """
    if env_dir := os.getenv(constants.ENV_RECURRENCES_DIR):
        path = Path(env_dir)
        if path.is_dir():
            return ("dir", path)
        logger.warning("DATERECUR_DIR points to non-existent directory: %s", env_dir)

    if env_file := os.getenv(constants.ENV_RECURRENCES_FILE):
        path = Path(env_file)
        if path.is_file():
            return ("file", path)
        logger.warning("DATERECUR_FILE points to non-existent file: %s", env_file)

    cwd_dir = Path.cwd() / constants.DEFAULT_RECURRENCES_DIR
    if cwd_dir.is_dir():
        return ("dir", cwd_dir)

    cwd_file = Path.cwd() / constants.DEFAULT_RECURRENCES_FILE
    if cwd_file.is_file():
        return ("file", cwd_file)

    return None


def load_recurrence_from_file(filepath: Path) -> Optional[RecurrenceEntry]:
    """
    Load a single recurrence from an individual YAML file.

    Args:
        filepath: Path to individual recurrence YAML file

    Returns:
        RecurrenceEntry or None if file is invalid

    Note:
        Errors are logged but not raised - allows directory loading to continue
    """
    try:
        with filepath.open() as f:
            data = yaml.safe_load(f)

        if data is None:
            logger.warning("Empty recurrence file: %s", filepath)
            return None

        entry = RecurrenceEntry(**data)
        entry.source_file = filepath

        # Rules are only checked against their measures when the rule set is built
        entry.to_recurrence()

        expected_filename = f"{entry.id}.yaml"
        if filepath.name != expected_filename:
            logger.error(
                "Failed to load recurrence from '%s':\n"
                "  Recurrence ID '%s' does not match filename.\n"
                "  Expected: '%s'\n"
                "  Fix: Rename file to '%s' or change 'id' field to '%s'",
                filepath,
                entry.id,
                expected_filename,
                expected_filename,
                filepath.stem,
            )
            return None

        return entry

    except yaml.YAMLError as e:
        logger.error("YAML parsing error in '%s': %s", filepath, e)
        return None
    except (ValueError, TypeError, RecurrenceError) as e:
        logger.error("Invalid recurrence data in '%s': %s", filepath, e)
        return None
    except Exception as e:
        logger.error("Unexpected error loading '%s': %s", filepath, e)
        raise


def load_recurrences_from_directory(dirpath: Path) -> RecurrenceFile:
    """
    Load all recurrences from a directory structure.

    Directory structure:
        recurrences/
        ├── _config.yaml           # Global config (optional)
        ├── recurrence-id-1.yaml   # Individual recurrence files
        └── ...

    Args:
        dirpath: Path to recurrences directory

    Returns:
        RecurrenceFile with all loaded recurrences
    """
    logger.info("Loading recurrences from directory: %s", dirpath)

    config_path = dirpath / constants.CONFIG_FILENAME
    config = GlobalConfig()

    if config_path.is_file():
        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)

            if config_data is not None:
                config = GlobalConfig(**config_data)
                logger.debug("Loaded global config from: %s", config_path)
        except (yaml.YAMLError, ValueError, TypeError) as e:
            logger.warning("Failed to load config from '%s', using defaults: %s", config_path, e)

    entries: list[RecurrenceEntry] = []
    seen_ids: dict[str, Path] = {}
    for path in sorted(dirpath.glob(constants.RECURRENCE_FILE_PATTERN)):
        if path.name == constants.CONFIG_FILENAME or path.name.startswith("."):
            continue

        entry = load_recurrence_from_file(path)
        if entry is None:
            continue

        if entry.id in seen_ids:
            logger.error(
                "Duplicate recurrence ID '%s' found in multiple files:\n"
                "  First: %s\n"
                "  Duplicate: %s\n"
                "  The duplicate will be ignored.",
                entry.id,
                seen_ids[entry.id],
                path,
            )
            continue

        seen_ids[entry.id] = path
        entries.append(entry)

    recurrence_file = RecurrenceFile(recurrences=entries, config=config)

    logger.info(
        "Loaded %d recurrences (%d enabled) from directory: %s",
        len(recurrence_file.recurrences),
        sum(1 for r in recurrence_file.recurrences if r.enabled),
        dirpath,
    )

    return recurrence_file


def load_recurrence_file(filepath: Path) -> RecurrenceFile:
    """
    Load and validate a single recurrences.yaml file.

    Every entry is also built into a rule set, so invalid units or measures
    fail here rather than at query time.

    Raises:
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If schema validation fails
        daterecur.ValidationError: If a rule is invalid for its measure
    """
    logger.info("Loading recurrences from: %s", filepath)

    try:
        with filepath.open() as f:
            data = yaml.safe_load(f)

        if data is None:
            logger.warning("Empty recurrences file: %s", filepath)
            return RecurrenceFile()

        # Handle case where recurrences key is None (all commented out)
        if data.get("recurrences") is None:
            data["recurrences"] = []

        recurrence_file = RecurrenceFile(**data)

        for entry in recurrence_file.recurrences:
            entry.source_file = filepath
            entry.to_recurrence()

        logger.info(
            "Loaded %d recurrences (%d enabled)",
            len(recurrence_file.recurrences),
            sum(1 for r in recurrence_file.recurrences if r.enabled),
        )

        return recurrence_file

    except yaml.YAMLError as e:
        logger.error("YAML parsing error in %s: %s", filepath, e)
        raise
    except Exception as e:
        logger.error("Error loading recurrences from %s: %s", filepath, e)
        raise


def load_recurrences_from_path(path: Path) -> Optional[RecurrenceFile]:
    """Load recurrences from a file or a directory, or None if path is neither."""
    if path.is_file():
        return load_recurrence_file(path)
    if path.is_dir():
        return load_recurrences_from_directory(path)
    return None


def dump_recurrence(
    recurrence: Recurrence,
    filepath: Path,
    recurrence_id: str,
    description: Optional[str] = None,
) -> RecurrenceEntry:
    """
    Write a rule set to an individual recurrence YAML file.

    Args:
        recurrence: Rule set to save
        filepath: Destination file
        recurrence_id: Identifier stored in the file
        description: Optional description

    Returns:
        The entry that was written
    """
    entry = RecurrenceEntry(
        id=recurrence_id,
        description=description,
        **recurrence.snapshot().model_dump(),
    )
    data = entry.model_dump(mode="json", exclude_none=True)

    with filepath.open("w") as f:
        yaml.safe_dump(data, f, sort_keys=False)

    logger.info("Saved recurrence '%s' to %s", recurrence_id, filepath)
    return entry
