"""Load and validate scheduling problems from JSON files."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from .models import SchedulingProblem


class DataValidationError(Exception):
    """Raised when problem data fails validation."""
    pass


def load_problem(path: Union[str, Path]) -> SchedulingProblem:
    """
    Load a scheduling problem from a JSON file.

    The JSON may use camelCase (as produced by the web client) or snake_case
    keys.

    Args:
        path: Path to the JSON file

    Returns:
        Validated SchedulingProblem

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
        DataValidationError: If the data fails validation
    """
    path = Path(path)

    with open(path) as f:
        data = json.load(f)

    return parse_problem(data)


def parse_problem(data: dict[str, Any]) -> SchedulingProblem:
    """
    Validate a problem dictionary.

    Raises:
        DataValidationError: If the data fails validation
    """
    if not isinstance(data, dict):
        raise DataValidationError("Problem data must be a JSON object")

    converted = convert_keys_to_snake_case(data)

    try:
        return SchedulingProblem.model_validate(converted)
    except ValidationError as e:
        raise DataValidationError(str(e)) from e


def convert_keys_to_snake_case(obj: Any) -> Any:
    """Recursively convert dictionary keys from camelCase to snake_case."""

    def to_snake_case(name: str) -> str:
        name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
        name = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', name)
        return name.lower()

    if isinstance(obj, dict):
        return {to_snake_case(k): convert_keys_to_snake_case(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [convert_keys_to_snake_case(item) for item in obj]
    else:
        return obj
