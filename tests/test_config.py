"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from scinames.config.policies import Policies, load_policies
from scinames.config.settings import Settings


@pytest.fixture
def minimal_policy_dict() -> dict:
    return {
        "policy_version": "test-version",
        "clustering": {
            "taxon_concept_boundaries": ["lump", "split"],
            "merge_subspecies_into_binomial": False,
        },
        "validation": {
            "enabled_validators": ["changes", "datasets"],
            "unmapped_row_severity": "warning",
        },
        "persistence": {"compress": False},
    }


def test_policy_defaults() -> None:
    policies = Policies()
    assert policies.clustering.taxon_concept_boundaries == ["lump", "split", "rename"]
    assert policies.clustering.merge_subspecies_into_binomial is True
    assert policies.validation.enabled_validators == ["changes", "datasets", "name_clusters"]
    assert policies.validation.unmapped_row_severity == "severe"
    assert policies.persistence.compress is True
    assert policies.extraction.default_name_extractors.startswith("scientificName(scientificName)")


def test_load_policies_from_dict(minimal_policy_dict: dict) -> None:
    policies = load_policies(minimal_policy_dict)
    assert isinstance(policies, Policies)
    assert policies.policy_version == "test-version"
    assert policies.clustering.merge_subspecies_into_binomial is False
    assert policies.validation.unmapped_row_severity == "warning"
    assert policies.persistence.compress is False
    assert minimal_policy_dict["persistence"] == {"compress": False}


def test_load_policies_from_file(tmp_path: Path, minimal_policy_dict: dict) -> None:
    path = tmp_path / "policies.yaml"
    path.write_text(yaml.safe_dump(minimal_policy_dict), encoding="utf-8")
    assert load_policies(path).clustering.taxon_concept_boundaries == ["lump", "split"]

    with pytest.raises(FileNotFoundError):
        load_policies(tmp_path / "missing.yaml")

    listing = tmp_path / "listing.yaml"
    listing.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_policies(listing)


def test_policy_env_overrides(monkeypatch: pytest.MonkeyPatch, minimal_policy_dict: dict) -> None:
    monkeypatch.setenv("SCINAMES_POLICY__VALIDATION__UNMAPPED_ROW_SEVERITY", "info")
    monkeypatch.setenv("SCINAMES_POLICY__PERSISTENCE__COMPRESS", "true")
    monkeypatch.setenv("SCINAMES_POLICY__EXTRACTION__FIND_ALL_NAMES", "true")

    policies = load_policies(minimal_policy_dict)
    assert policies.validation.unmapped_row_severity == "info"
    assert policies.persistence.compress is True
    assert policies.extraction.find_all_names is True


def test_policy_env_override_cannot_replace_a_scalar(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCINAMES_POLICY__POLICY_VERSION__NESTED", "1")
    with pytest.raises(ValueError):
        load_policies({"policy_version": "v1"})


@pytest.mark.parametrize(
    "overrides",
    [
        {"policy_version": ""},
        {"clustering": {"taxon_concept_boundaries": ["merge"]}},
        {"validation": {"enabled_validators": ["spelling"]}},
        {"validation": {"unmapped_row_severity": "fatal"}},
        {"generators": {"synonym_separator_pattern": "("}},
    ],
)
def test_invalid_policies_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValueError):
        load_policies(overrides)


def test_settings_defaults(tmp_path: Path) -> None:
    settings = Settings(config_dir=tmp_path, create_dirs=False)
    assert settings.environment == "development"
    assert settings.log_level == "INFO"
    assert settings.paths.logs_dir == Path("logs")
    assert settings.log_file == Path("logs") / "scinames.log"
    assert settings.policy_version == settings.policies.policy_version
    assert settings.policies.validation.report_multiple_binomials is True


def test_settings_environment_override(tmp_path: Path, minimal_policy_dict: dict) -> None:
    default_yaml = {
        "environment": "development",
        "paths": {"logs_dir": "logs"},
        "log_level": "INFO",
        "policies": minimal_policy_dict,
    }
    testing_yaml = {
        "log_level": "DEBUG",
        "policies": {
            "policy_version": "testing",
        },
    }
    (tmp_path / "default.yaml").write_text(yaml.safe_dump(default_yaml), encoding="utf-8")
    (tmp_path / "testing.yaml").write_text(yaml.safe_dump(testing_yaml), encoding="utf-8")

    settings = Settings(config_dir=tmp_path, environment="testing", create_dirs=False)
    assert settings.log_level == "DEBUG"
    assert settings.policies.policy_version == "testing"
    assert settings.policies.validation.unmapped_row_severity == "warning"


def test_settings_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SCINAMES_SETTINGS__LOG_LEVEL", "WARNING")
    monkeypatch.setenv("SCINAMES_SETTINGS__PATHS__LOGS_DIR", str(tmp_path / "custom-logs"))

    settings = Settings(config_dir=tmp_path, create_dirs=False)
    assert settings.log_level == "WARNING"
    assert settings.paths.logs_dir == tmp_path / "custom-logs"


def test_settings_create_directories(tmp_path: Path) -> None:
    settings = Settings(
        config_dir=tmp_path,
        paths={"logs_dir": str(tmp_path / "logs")},
    )
    assert (tmp_path / "logs").is_dir()
    assert settings.paths.logs_dir.is_absolute()


def test_settings_only_create_the_logs_directory(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("SCINAMES_SETTINGS__PATHS__LOGS_DIR", raising=False)
    monkeypatch.chdir(tmp_path)
    settings = Settings(config_dir=tmp_path)
    assert settings.paths.logs_dir == tmp_path / "logs"
    assert sorted(path.name for path in tmp_path.iterdir()) == ["logs"]


def test_settings_accept_policy_instances(tmp_path: Path) -> None:
    policies = Policies(policy_version="pinned")
    settings = Settings(config_dir=tmp_path, create_dirs=False, policies=policies)
    assert settings.policies is policies
