"""Tests for the project validators."""

from __future__ import annotations

import pytest

from scinames.config.policies import Policies
from scinames.entities.change import Change, ChangeType
from scinames.entities.dataset import Dataset
from scinames.entities.dates import SimplifiedDate
from scinames.pipeline.validation import (
    ChangeValidator,
    DatasetValidator,
    NameClustersValidator,
    Severity,
    ValidationError,
    run_validators,
)
from scinames.project import Project


def _dataset(name: str, year: int, *names: str, is_checklist: bool = True) -> Dataset:
    dataset = Dataset(name, SimplifiedDate(year=year), is_checklist=is_checklist)
    dataset.add_rows({"scientificName": value} for value in names)
    return dataset


def _explicit(project: Project, dataset: Dataset, change_type: ChangeType | str, sources=(), targets=()) -> Change:
    change = Change(
        dataset,
        change_type,
        [project.names.get_from_full_name(text) for text in sources],
        [project.names.get_from_full_name(text) for text in targets],
    )
    dataset.add_explicit_change(change)
    return change


def _renamed_project() -> tuple[Project, Dataset, Dataset]:
    project = Project("Validation")
    first = project.add_dataset(_dataset("D1", 1990, "Alpha beta"))
    second = project.add_dataset(_dataset("D2", 2000, "Alpha gamma"))
    _explicit(project, second, ChangeType.RENAME, ["Alpha beta"], ["Alpha gamma"])
    return project, first, second


def _messages(findings: list[ValidationError]) -> list[str]:
    return [finding.message for finding in findings]


def test_consistent_project_only_reports_information() -> None:
    project, _first, _second = _renamed_project()
    findings = project.validate()
    assert [finding for finding in findings if finding.severity is not Severity.INFO] == []
    assert len(findings) == 1
    assert findings[0].validator == "Name clusters validator"
    assert "spans 2 binomial names" in findings[0].message


def test_change_shapes_are_checked() -> None:
    project, _first, second = _renamed_project()
    bad_addition = _explicit(project, second, ChangeType.ADDITION, ["Alpha gamma"], ["Alpha delta"])
    bad_lump = _explicit(project, second, ChangeType.LUMP, ["Alpha gamma"], ["Alpha delta"])
    bad_rename = _explicit(project, second, ChangeType.RENAME, ["Alpha gamma"], [])

    findings = list(ChangeValidator().validate(project))
    severe = {(finding.target, finding.message.split(":")[0]) for finding in findings if finding.severity is Severity.SEVERE}
    assert (bad_addition, "Incorrect addition or deletion") in severe
    assert (bad_lump, "Incorrect lump or split") in severe
    assert (bad_rename, "Incorrect rename") in severe


def test_change_cardinalities_are_exact() -> None:
    project, _first, second = _renamed_project()
    merged_rename = _explicit(project, second, ChangeType.RENAME, ["Alpha beta", "Alpha gamma"], ["Alpha delta"])
    wide_lump = _explicit(
        project, second, ChangeType.LUMP, ["Alpha beta", "Alpha gamma", "Alpha delta"], ["Alpha zeta", "Alpha eta"]
    )
    wide_split = _explicit(
        project, second, ChangeType.SPLIT, ["Alpha beta", "Alpha gamma"], ["Alpha zeta", "Alpha eta", "Alpha theta"]
    )
    lump = _explicit(project, second, ChangeType.LUMP, ["Alpha beta", "Alpha gamma"], ["Alpha gamma"])
    split = _explicit(project, second, ChangeType.SPLIT, ["Alpha gamma"], ["Alpha gamma", "Alpha iota"])

    shapes = {
        (finding.target, finding.message.split(":")[0])
        for finding in ChangeValidator().validate(project)
        if finding.message.startswith("Incorrect")
    }
    assert (merged_rename, "Incorrect rename") in shapes
    assert (wide_lump, "Incorrect lump or split") in shapes
    assert (wide_split, "Incorrect lump or split") in shapes
    assert not [target for target, _message in shapes if target in (lump, split)]


def test_repeated_cluster_on_one_side_warns() -> None:
    project, _first, _second = _renamed_project()
    third = project.add_dataset(_dataset("D3", 2010, "Alpha delta"))
    change = _explicit(project, third, ChangeType.RENAME, ["Alpha beta", "Alpha gamma"], ["Alpha delta"])

    warnings = [
        finding
        for finding in ChangeValidator().validate(project)
        if finding.target is change and finding.severity is Severity.WARNING
    ]
    assert any(finding.message.startswith("Name cluster repeats twice in change 'from' names") for finding in warnings)


def test_names_without_a_cluster_are_severe(monkeypatch: pytest.MonkeyPatch) -> None:
    project, _first, second = _renamed_project()
    manager = project.name_cluster_manager
    orphan = project.names.get_from_full_name("Alpha gamma")
    lookup = manager.get_cluster
    monkeypatch.setattr(manager, "get_cluster", lambda name: None if name == orphan else lookup(name))

    findings = [
        finding
        for finding in ChangeValidator().validate(project)
        if finding.target is second.explicit_changes[0] and finding.severity is Severity.SEVERE
    ]
    assert [finding.message.split(":")[0] for finding in findings] == [
        "Name Alpha gamma in change is missing a name cluster"
    ]


def test_unrecognized_types_and_unknown_from_names_warn() -> None:
    project, _first, second = _renamed_project()
    odd = _explicit(project, second, "reranked", ["Zeta zeta"], ["Alpha gamma"])

    warnings = [finding for finding in ChangeValidator().validate(project) if finding.target is odd]
    messages = _messages(warnings)
    assert all(finding.severity is Severity.WARNING for finding in warnings)
    assert any(message.startswith("Change type 'reranked' not recognized") for message in messages)
    assert any(message.startswith("'From' name Zeta zeta not previously recognized") for message in messages)
    assert warnings[0].dataset is second


def test_non_ascii_text_warns() -> None:
    project, _first, second = _renamed_project()
    change = second.explicit_changes[0]
    change.set_property("note", "Müller, 1990")
    findings = [finding for finding in ChangeValidator().validate(project) if finding.target is change]
    assert [finding.severity for finding in findings] == [Severity.WARNING]
    assert "cannot be rendered in ASCII" in findings[0].message


def test_lump_with_an_empty_side_shares_no_cluster() -> None:
    project, _first, second = _renamed_project()
    lump = _explicit(project, second, ChangeType.LUMP, ["Alpha gamma", "Alpha beta"], [])
    messages = [finding.message for finding in ChangeValidator().validate(project) if finding.target is lump]
    assert any(message.startswith("Lump or split shares 0 name clusters") for message in messages)


def test_repeated_additions_and_deletions() -> None:
    project = Project()
    project.add_dataset(_dataset("D1", 1990, "Alpha alpha"))
    second = project.add_dataset(_dataset("D2", 2000, "Alpha alpha", "Gamma gamma"))
    _explicit(project, second, ChangeType.ADDITION, (), ["Gamma gamma"])
    paper = project.add_dataset(_dataset("P1", 2005, is_checklist=False))
    _explicit(project, paper, ChangeType.DELETION, ["Alpha alpha"], ())
    _explicit(project, paper, ChangeType.ADDITION, (), ["Alpha alpha"])

    messages = _messages(list(DatasetValidator().validate(project)))
    assert "Name Gamma gamma added multiple times (2) in Checklist D2 (2000)" in messages
    assert "Name Alpha alpha deleted and added in Dataset P1 (2005)" in messages


def test_changes_without_effect_are_reported() -> None:
    project = Project()
    project.add_dataset(_dataset("D1", 1990, "Alpha alpha"))
    paper = project.add_dataset(_dataset("P1", 1995, is_checklist=False))
    idle = _explicit(project, paper, ChangeType.ADDITION, (), ["Alpha alpha"])
    _explicit(project, paper, ChangeType.ERROR, ["Zeta zeta"], ())

    findings = list(DatasetValidator().validate(project))
    assert [(finding.target, finding.severity) for finding in findings] == [(idle, Severity.SEVERE)]
    assert findings[0].message.startswith("Change has no effect: Alpha alpha was not newly recognized")


def test_rows_without_names_are_reported_with_policy_severity() -> None:
    project = Project()
    dataset = project.add_dataset(_dataset("D1", 1990, "Alpha alpha"))
    orphan = dataset.add_row({"notes": "illegible"})

    findings = [finding for finding in DatasetValidator().validate(project) if finding.target is orphan]
    assert len(findings) == 1
    assert findings[0].severity is Severity.SEVERE
    assert findings[0].dataset is dataset
    assert findings[0].message == "No scientific name found for row; it will be excluded from analyses"

    relaxed = Project(policies=Policies(validation={"unmapped_row_severity": "warning"}))
    relaxed_dataset = relaxed.add_dataset(_dataset("D1", 1990))
    relaxed_dataset.add_row({"notes": "illegible"})
    assert [finding.severity for finding in DatasetValidator().validate(relaxed)] == [Severity.WARNING]


def test_multiple_binomial_report_follows_policy() -> None:
    project, _first, _second = _renamed_project()
    assert len(list(NameClustersValidator().validate(project))) == 1

    quiet = Project(policies=Policies(validation={"report_multiple_binomials": False}))
    quiet.add_dataset(_dataset("D1", 1990, "Alpha beta"))
    second = quiet.add_dataset(_dataset("D2", 2000, "Alpha gamma"))
    _explicit(quiet, second, ChangeType.RENAME, ["Alpha beta"], ["Alpha gamma"])
    assert list(NameClustersValidator().validate(quiet)) == []


def test_run_validators_selects_by_key() -> None:
    project, _first, _second = _renamed_project()
    assert list(run_validators(project, ["changes", "datasets"])) == []
    with pytest.raises(ValueError):
        list(run_validators(project, ["unknown"]))


def test_finding_serialisation() -> None:
    project, _first, second = _renamed_project()
    finding = ChangeValidator().error(Severity.WARNING, "Something odd", second.explicit_changes[0])
    payload = finding.to_dict()
    assert payload["severity"] == "warning"
    assert payload["dataset"] == "D2 (2000)"
    assert payload["target"].startswith("Alpha beta -> Alpha gamma")
    assert str(finding) == "[warning] Change validator: Something odd"
