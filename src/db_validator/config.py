"""
Expectation document loading and validator settings.

Expectation documents are YAML files of the form::

    tables:
      Users:
        count: 3
        sample:
          - {id: 1, name: Alice}
        columns:
          status: active

They are structurally checked against ``EXPECTED_CONFIG_SCHEMA`` before the
dataclasses are built. Settings come from environment variables.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import jsonschema
import yaml

from .dialects import get_dialect
from .errors import ExpectationConfigError
from .models import ExpectedConfig
from .parallel import DEFAULT_MAX_CONCURRENCY

logger = logging.getLogger(__name__)

MAX_CONFIG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
CONFIG_EXTENSIONS = (".yaml", ".yml")

# Expected values are compared with "=" in SQL; YAML dates pass as scalars
_SCALAR_SCHEMA = {"not": {"type": ["object", "array"]}}

_ROW_SCHEMA = {"type": "object", "minProperties": 1, "additionalProperties": _SCALAR_SCHEMA}

EXPECTED_CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["tables"],
    "properties": {
        "tables": {
            "type": ["object", "null"],
            "additionalProperties": {
                "type": "object",
                "required": ["count"],
                "properties": {
                    "count": {"type": "integer", "minimum": 0},
                    "sample": {
                        "oneOf": [
                            _ROW_SCHEMA,
                            {"type": "array", "items": _ROW_SCHEMA},
                            {"type": "null"},
                        ]
                    },
                    "columns": {
                        "type": ["object", "null"],
                        "additionalProperties": _SCALAR_SCHEMA,
                    },
                },
                "additionalProperties": False,
            },
        },
    },
}


def validate_config_path(path: str | os.PathLike) -> Path:
    """
    Check that an expectation file path is safe to read.

    Raises:
        ExpectationConfigError: If the path is empty, traverses upwards, is
            missing, is not a regular file, has the wrong extension or is too large
    """
    if not path:
        raise ExpectationConfigError("Config file path cannot be empty")

    candidate = Path(path)
    if ".." in candidate.parts:
        raise ExpectationConfigError("Path traversal not allowed in config file path")

    if not candidate.exists():
        raise ExpectationConfigError(f"Config file does not exist: {candidate}")

    if not candidate.is_file():
        raise ExpectationConfigError(
            "Config file must be a regular file, not directory or special file"
        )

    if candidate.suffix.lower() not in CONFIG_EXTENSIONS:
        raise ExpectationConfigError("Config file must have .yaml or .yml extension")

    size = candidate.stat().st_size
    if size > MAX_CONFIG_FILE_SIZE:
        raise ExpectationConfigError(
            f"Config file too large (max {MAX_CONFIG_FILE_SIZE} bytes, got {size} bytes)"
        )

    return candidate


def parse_expected_config(document: str) -> ExpectedConfig:
    """
    Parse and validate an expectation document given as YAML text.

    Raises:
        ExpectationConfigError: If the YAML is malformed or violates the schema
    """
    try:
        data = yaml.safe_load(document)
    except yaml.YAMLError as e:
        raise ExpectationConfigError(f"Failed to parse expectation YAML: {e}") from e

    if data is None:
        data = {"tables": {}}

    try:
        jsonschema.validate(instance=data, schema=EXPECTED_CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ExpectationConfigError(
            f"Invalid expectation document at {location}: {e.message}"
        ) from e

    return ExpectedConfig.from_dict(data)


def load_expected_config(path: str | os.PathLike) -> ExpectedConfig:
    """
    Load expectations from a YAML file.

    Example:
        >>> expected = load_expected_config("scenarios/basic/expected-primary.yaml")
        >>> sorted(expected.tables)
        ['Orders', 'Users']
    """
    config_path = validate_config_path(path)
    expected = parse_expected_config(config_path.read_text(encoding="utf-8"))
    logger.info(f"Loaded expectations for {len(expected)} tables from {config_path}")
    return expected


@dataclass
class ValidatorSettings:
    """Runtime settings for a validation run."""

    db_type: str = "postgresql"
    schema: str | None = None
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    database_id: str = ""

    def __post_init__(self) -> None:
        get_dialect(self.db_type)
        if not isinstance(self.max_concurrency, int) or self.max_concurrency < 1:
            raise ValueError(
                f"Invalid max_concurrency: {self.max_concurrency!r}. Must be >= 1."
            )

    @classmethod
    def from_env(cls) -> "ValidatorSettings":
        """
        Read settings from environment variables

        Environment variables:
            DB_TYPE: postgresql, sqlserver or sqlite (default: postgresql)
            DB_VALIDATOR_SCHEMA: Schema holding the tables (default: per database)
            DB_VALIDATOR_MAX_CONCURRENCY: Concurrent detail queries (default: 5)
            DB_VALIDATOR_DATABASE_ID: Identifier reported in results
        """
        raw_concurrency = os.getenv("DB_VALIDATOR_MAX_CONCURRENCY", str(DEFAULT_MAX_CONCURRENCY))
        try:
            max_concurrency = int(raw_concurrency)
        except ValueError:
            raise ValueError(
                f"DB_VALIDATOR_MAX_CONCURRENCY must be an integer, got {raw_concurrency!r}"
            ) from None

        return cls(
            db_type=os.getenv("DB_TYPE", "postgresql"),
            schema=os.getenv("DB_VALIDATOR_SCHEMA") or None,
            max_concurrency=max_concurrency,
            database_id=os.getenv("DB_VALIDATOR_DATABASE_ID", ""),
        )
