from typing import Any, Dict, Union
import json
from pathlib import Path

import yaml
from pydantic import ValidationError

from .records import ProjectRecords
from .utils.logger import app_logger


logger = app_logger.bind(component="loader")

YAML_SUFFIXES = (".yaml", ".yml")


class RecordLoadError(Exception):
    """A record set could not be read, parsed or validated."""


def parse_records(data: Union[ProjectRecords, Dict[str, Any], None]) -> ProjectRecords:
    """Validate a deserialized record set."""
    if isinstance(data, ProjectRecords):
        return data
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise RecordLoadError(f"Expected a mapping at the top level, got {type(data).__name__}")
    try:
        return ProjectRecords.model_validate(data)
    except ValidationError as e:
        raise RecordLoadError(f"Invalid record set: {e.error_count()} validation errors\n{e}") from e


def load_records(path: Union[str, Path]) -> ProjectRecords:
    """Read and validate a record set from a JSON or YAML file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise RecordLoadError(f"Cannot read {path}: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise RecordLoadError(f"Cannot parse {path}: {e}") from e

    records = parse_records(data)
    logger.info(f"Loaded record set from {path}: {records.counts()}")
    return records
