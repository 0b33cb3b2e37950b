"""End-to-end smoke tests for the Typer-based scinames CLI."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer
from loguru import logger
from typer.testing import CliRunner

from scinames.cli import common
from scinames.cli.common import CLIError, merge_overrides, parse_override
from scinames.cli.main import app
from scinames.entities.change import Change, ChangeType
from scinames.entities.dataset import Dataset
from scinames.entities.dates import SimplifiedDate
from scinames.project import Project


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_env(tmp_path: Path) -> dict[str, str]:
    return {
        "SCINAMES_SETTINGS__PATHS__LOGS_DIR": str(tmp_path / "logs"),
    }


@pytest.fixture(autouse=True)
def _wide_console_and_clean_logger(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(common.console, "width", 500)
    yield
    logger.remove()


@pytest.fixture()
def project_file(tmp_path: Path) -> Path:
    project = Project("Alphas")

    first = Dataset("D1", SimplifiedDate(year=1980))
    first.add_rows([{"scientificName": "Alpha beta"}, {"scientificName": "Alpha gamma"}, {"notes": "illegible"}])
    project.add_dataset(first)

    second = Dataset("D2", SimplifiedDate(year=1990))
    second.add_rows([{"scientificName": "Alpha beta"}])
    project.add_dataset(second)

    third = Dataset("D3", SimplifiedDate(year=2000))
    third.add_rows(
        [
            {"scientificName": "Alpha beta", "synonyms": "Alpha delta"},
            {"scientificName": "Alpha gamma", "synonyms": ""},
        ]
    )
    project.add_dataset(third)

    beta = project.names.get_from_full_name("Alpha beta")
    gamma = project.names.get_from_full_name("Alpha gamma")
    second.add_explicit_change(Change(second, ChangeType.LUMP, [beta, gamma], [beta]))
    third.add_explicit_change(Change(third, ChangeType.SPLIT, [beta], [beta, gamma]))
    return project.save(tmp_path / "alphas.xml.gz")


def test_parse_override_builds_nested_mapping() -> None:
    assert parse_override("policies.persistence.compress=false") == {"policies": {"persistence": {"compress": False}}}
    assert parse_override("log_level=DEBUG") == {"log_level": "DEBUG"}
    with pytest.raises(typer.BadParameter):
        parse_override("log_level")
    with pytest.raises(typer.BadParameter):
        parse_override(" . =1")


def test_merge_overrides_is_deep() -> None:
    merged = merge_overrides(
        [
            parse_override("policies.validation.unmapped_row_severity=warning"),
            parse_override("policies.validation.report_multiple_binomials=false"),
        ]
    )
    assert merged == {
        "policies": {"validation": {"unmapped_row_severity": "warning", "report_multiple_binomials": False}}
    }


def test_project_summary(runner: CliRunner, cli_env: dict[str, str], project_file: Path) -> None:
    result = runner.invoke(app, ["project", "summary", str(project_file)], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "Datasets in Alphas" in result.output
    assert "D1 (1980)" in result.output
    assert "Reversed:" in result.output
    assert "lump (1990) -> split (2000)" in result.output


def test_verbose_flag_renders_context(runner: CliRunner, cli_env: dict[str, str], project_file: Path) -> None:
    result = runner.invoke(
        app, ["--verbose", "--run-id", "run-42", "project", "summary", str(project_file)], env=cli_env
    )

    assert result.exit_code == 0, result.output
    assert "run-42" in result.output
    assert "Project Alphas" in result.output


def test_project_clusters(runner: CliRunner, cli_env: dict[str, str], project_file: Path) -> None:
    result = runner.invoke(app, ["project", "clusters", str(project_file), "--name", "Alpha gamma"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "Alpha beta, Alpha gamma" in result.output
    assert "1980" in result.output


def test_project_clusters_unknown_name(runner: CliRunner, cli_env: dict[str, str], project_file: Path) -> None:
    result = runner.invoke(app, ["project", "clusters", str(project_file), "-n", "Zeta zeta"], env=cli_env)

    assert result.exit_code != 0
    assert isinstance(result.exception, CLIError)
    assert "Zeta zeta" in str(result.exception)


def test_project_concepts(runner: CliRunner, cli_env: dict[str, str], project_file: Path) -> None:
    result = runner.invoke(app, ["project", "concepts", str(project_file), "Alpha beta"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "Taxon concepts for Alpha beta" in result.output


def test_missing_project_file(runner: CliRunner, cli_env: dict[str, str], tmp_path: Path) -> None:
    result = runner.invoke(app, ["project", "summary", str(tmp_path / "missing.xml")], env=cli_env)

    assert result.exit_code != 0
    assert isinstance(result.exception, CLIError)


def test_validate_fails_on_severe_findings(runner: CliRunner, cli_env: dict[str, str], project_file: Path) -> None:
    result = runner.invoke(app, ["project", "validate", str(project_file), "--fail-on-severe"], env=cli_env)

    assert result.exit_code == 1
    assert "No scientific name found for row" in result.output


def test_validate_severity_can_be_overridden(
    runner: CliRunner, cli_env: dict[str, str], project_file: Path
) -> None:
    result = runner.invoke(
        app,
        [
            "-o",
            "policies.validation.unmapped_row_severity=warning",
            "project",
            "validate",
            str(project_file),
            "--validator",
            "datasets",
            "--fail-on-severe",
        ],
        env=cli_env,
    )

    assert result.exit_code == 0, result.output
    assert "warning" in result.output


def test_validate_rejects_unknown_validator(runner: CliRunner, cli_env: dict[str, str], project_file: Path) -> None:
    result = runner.invoke(app, ["project", "validate", str(project_file), "--validator", "spelling"], env=cli_env)

    assert result.exit_code != 0
    assert isinstance(result.exception, CLIError)


def test_invalid_override_is_reported(runner: CliRunner, cli_env: dict[str, str], project_file: Path) -> None:
    result = runner.invoke(
        app, ["-o", "policies.clustering.taxon_concept_boundaries=[\"merge\"]", "project", "summary", str(project_file)],
        env=cli_env,
    )

    assert result.exit_code != 0
    assert isinstance(result.exception, CLIError)
    assert "Invalid configuration" in str(result.exception)


def test_generate_list(runner: CliRunner, cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["generate", "list"], env=cli_env)

    assert result.exit_code == 0, result.output
    for key in ("synonyms-from-column", "renames-by-id", "renames-from-ids", "genus-composition", "genus-reorganization"):
        assert key in result.output


def test_generate_run_submits_and_saves(
    runner: CliRunner, cli_env: dict[str, str], project_file: Path, tmp_path: Path
) -> None:
    output = tmp_path / "updated.xml"
    result = runner.invoke(
        app,
        [
            "generate",
            "run",
            str(project_file),
            "synonyms-from-column",
            "--column",
            "synonyms",
            "--submit",
            "--output",
            str(output),
        ],
        env=cli_env,
    )

    assert result.exit_code == 0, result.output
    assert "Synonyms from column: 1 candidates" in result.output
    assert "Submitted 1 changes." in result.output

    updated = Project.load(output)
    third = updated.get_dataset("D3")
    renames = [change for change in third.explicit_changes if change.type == ChangeType.RENAME]
    assert [(change.from_string, change.to_string) for change in renames] == [("Alpha delta", "Alpha beta")]
    assert renames[0].properties["note"] == "Listed as a synonym of Alpha beta in column 'synonyms'"


def test_generate_run_without_output_does_not_save(
    runner: CliRunner, cli_env: dict[str, str], project_file: Path
) -> None:
    before = project_file.read_bytes()
    result = runner.invoke(
        app,
        ["generate", "run", str(project_file), "synonyms-from-column", "-c", "synonyms", "--submit"],
        env=cli_env,
    )

    assert result.exit_code == 0, result.output
    assert "were not saved" in result.output
    assert project_file.read_bytes() == before


def test_generate_run_errors(runner: CliRunner, cli_env: dict[str, str], project_file: Path) -> None:
    unknown_dataset = runner.invoke(
        app, ["generate", "run", str(project_file), "genus-composition", "--dataset", "D9"], env=cli_env
    )
    assert isinstance(unknown_dataset.exception, CLIError)
    assert "D9" in str(unknown_dataset.exception)

    missing_column = runner.invoke(app, ["generate", "run", str(project_file), "synonyms-from-column"], env=cli_env)
    assert isinstance(missing_column.exception, CLIError)

    unknown_key = runner.invoke(app, ["generate", "run", str(project_file), "mystery"], env=cli_env)
    assert isinstance(unknown_key.exception, CLIError)
