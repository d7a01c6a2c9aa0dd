"""
Unit tests for expectation loading and validator settings.
"""

import os
from datetime import date
from unittest.mock import patch

import pytest

from db_validator.config import (
    MAX_CONFIG_FILE_SIZE,
    ValidatorSettings,
    load_expected_config,
    parse_expected_config,
    validate_config_path,
)
from db_validator.errors import ExpectationConfigError

EXPECTED_YAML = """
tables:
  Users:
    count: 3
    sample:
      - {id: 1, name: Alice}
      - {id: 2, name: Bob}
    columns:
      status: active
  Orders:
    count: 2
    sample: {id: 10}
  Audit:
    count: 0
"""


class TestParseExpectedConfig:
    """Test YAML parsing and structural validation"""

    def test_parse_full_document(self):
        # Arrange & Act
        config = parse_expected_config(EXPECTED_YAML)

        # Assert
        assert sorted(config.tables) == ["Audit", "Orders", "Users"]
        assert config.tables["Users"].count == 3
        assert config.tables["Users"].sample == [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ]
        assert config.tables["Users"].columns == {"status": "active"}
        assert config.tables["Orders"].sample == [{"id": 10}]
        assert config.tables["Audit"].needs_detail is False

    def test_empty_document(self):
        assert len(parse_expected_config("")) == 0

    def test_null_tables(self):
        assert len(parse_expected_config("tables:\n")) == 0

    def test_null_values_preserved(self):
        config = parse_expected_config("tables:\n  Orders:\n    count: 1\n    columns: {note: null}\n")

        assert config.tables["Orders"].columns == {"note": None}

    def test_date_values_accepted(self):
        config = parse_expected_config(
            "tables:\n  Orders:\n    count: 1\n    sample: {placed: 2024-05-01}\n"
        )

        assert config.tables["Orders"].sample == [{"placed": date(2024, 5, 1)}]

    @pytest.mark.parametrize(
        "document",
        [
            "tables:\n  Users:\n    count: 1\n    columns: {tags: [a, b]}\n",
            "tables:\n  Users:\n    count: 1\n    sample: [{meta: {role: admin}}]\n",
            "tables:\n  Users:\n    count: 1\n    sample: {id: [1, 2]}\n",
        ],
    )
    def test_nested_expected_values_rejected(self, document):
        """Test that only scalar values can be compared"""
        with pytest.raises(ExpectationConfigError, match="tables/Users"):
            parse_expected_config(document)

    def test_table_named_count(self):
        config = parse_expected_config("tables:\n  count:\n    count: 4\n")

        assert list(config.tables) == ["count"]
        assert config.tables["count"].count == 4

    def test_missing_count(self):
        with pytest.raises(ExpectationConfigError, match="tables/Users") as exc_info:
            parse_expected_config("tables:\n  Users:\n    sample: [{id: 1}]\n")

        assert "'count' is a required property" in str(exc_info.value)

    def test_negative_count(self):
        with pytest.raises(ExpectationConfigError, match="tables/Users/count"):
            parse_expected_config("tables:\n  Users:\n    count: -1\n")

    def test_unknown_key(self):
        with pytest.raises(ExpectationConfigError, match="Invalid expectation document"):
            parse_expected_config("tables:\n  Users:\n    count: 1\n    rows: 3\n")

    def test_missing_tables_key(self):
        with pytest.raises(ExpectationConfigError, match="<root>"):
            parse_expected_config("Users:\n  count: 1\n")

    def test_malformed_yaml(self):
        with pytest.raises(ExpectationConfigError, match="Failed to parse expectation YAML"):
            parse_expected_config("tables: [unclosed\n")


class TestValidateConfigPath:
    """Test expectation file path checks"""

    def test_valid_path(self, tmp_path):
        path = tmp_path / "expected.yaml"
        path.write_text("tables: {}\n")

        assert validate_config_path(str(path)) == path

    def test_yml_extension(self, tmp_path):
        path = tmp_path / "expected.YML"
        path.write_text("tables: {}\n")

        assert validate_config_path(path) == path

    def test_empty_path(self):
        with pytest.raises(ExpectationConfigError, match="cannot be empty"):
            validate_config_path("")

    def test_path_traversal(self):
        with pytest.raises(ExpectationConfigError, match="Path traversal not allowed"):
            validate_config_path("../secrets/expected.yaml")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ExpectationConfigError, match="does not exist"):
            validate_config_path(tmp_path / "missing.yaml")

    def test_directory(self, tmp_path):
        directory = tmp_path / "expected.yaml"
        directory.mkdir()

        with pytest.raises(ExpectationConfigError, match="must be a regular file"):
            validate_config_path(directory)

    def test_wrong_extension(self, tmp_path):
        path = tmp_path / "expected.json"
        path.write_text("{}")

        with pytest.raises(ExpectationConfigError, match=r"\.yaml or \.yml"):
            validate_config_path(path)

    def test_file_too_large(self, tmp_path):
        path = tmp_path / "expected.yaml"
        with open(path, "wb") as f:
            f.truncate(MAX_CONFIG_FILE_SIZE + 1)

        with pytest.raises(ExpectationConfigError, match="too large"):
            validate_config_path(path)


class TestLoadExpectedConfig:
    """Test loading expectations from disk"""

    def test_load(self, tmp_path):
        path = tmp_path / "expected-primary.yaml"
        path.write_text(EXPECTED_YAML, encoding="utf-8")

        config = load_expected_config(path)

        assert sorted(config.tables) == ["Audit", "Orders", "Users"]

    def test_load_invalid_document(self, tmp_path):
        path = tmp_path / "expected.yaml"
        path.write_text("tables:\n  Users:\n    count: many\n")

        with pytest.raises(ExpectationConfigError):
            load_expected_config(path)


class TestValidatorSettings:
    """Test runtime settings"""

    def test_defaults(self):
        settings = ValidatorSettings()

        assert settings.db_type == "postgresql"
        assert settings.schema is None
        assert settings.max_concurrency == 5
        assert settings.database_id == ""

    def test_invalid_db_type(self):
        with pytest.raises(ValueError, match="Unsupported database type"):
            ValidatorSettings(db_type="oracle")

    def test_invalid_max_concurrency(self):
        with pytest.raises(ValueError, match="Invalid max_concurrency"):
            ValidatorSettings(max_concurrency=0)

    def test_from_env(self):
        env = {
            "DB_TYPE": "sqlserver",
            "DB_VALIDATOR_SCHEMA": "sales",
            "DB_VALIDATOR_MAX_CONCURRENCY": "3",
            "DB_VALIDATOR_DATABASE_ID": "target",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = ValidatorSettings.from_env()

        assert settings == ValidatorSettings(
            db_type="sqlserver", schema="sales", max_concurrency=3, database_id="target"
        )

    def test_from_env_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = ValidatorSettings.from_env()

        assert settings == ValidatorSettings()

    def test_from_env_non_integer_concurrency(self):
        with patch.dict(os.environ, {"DB_VALIDATOR_MAX_CONCURRENCY": "five"}, clear=True):
            with pytest.raises(ValueError, match="must be an integer"):
                ValidatorSettings.from_env()
