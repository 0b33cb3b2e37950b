"""Unit tests for scinames.pipeline.filters."""

from __future__ import annotations

import pytest

from scinames.entities.change import Change, ChangeType
from scinames.entities.dataset import Dataset
from scinames.entities.dates import SimplifiedDate
from scinames.exceptions import FilterParseError
from scinames.pipeline.filters import (
    IgnoreErrorChangeTypeFilter,
    IgnoreIgnoredChangeFilter,
    IgnoreSelfRenamesChangeFilter,
    NullChangeFilter,
    SkipChangesUnlessAddedBeforeChangeFilter,
    create_filter,
)
from scinames.project import Project


def _project() -> tuple[Project, Dataset, Dataset]:
    project = Project("Filters")
    first = Dataset("D1", SimplifiedDate(year=1990))
    first.add_rows([{"scientificName": "Alpha alpha"}])
    second = Dataset("D2", SimplifiedDate(year=2000))
    second.add_rows([{"scientificName": "Alpha alpha"}, {"scientificName": "Beta beta"}])
    project.add_dataset(first)
    project.add_dataset(second)
    return project, first, second


def test_null_filter_accepts_everything() -> None:
    project, _first, second = _project()
    assert all(NullChangeFilter().test(change) for change in second.get_all_changes())
    assert project.change_filter.description == "null filter"


def test_ignore_filters() -> None:
    project, _first, second = _project()
    alpha = project.names.get("Alpha", "alpha")
    ignored = Change(second, ChangeType.RENAME, [alpha], [project.names.get("Gamma", "gamma")])
    ignored.properties["ignored"] = "yes"
    error = Change(second, ChangeType.ERROR, [alpha])
    self_rename = Change(second, ChangeType.RENAME, [alpha], [alpha])

    assert not IgnoreIgnoredChangeFilter().test(ignored)
    assert not IgnoreErrorChangeTypeFilter().test(error)
    assert not IgnoreSelfRenamesChangeFilter().test(self_rename)
    assert IgnoreSelfRenamesChangeFilter().test(ignored)


def test_chain_rejects_when_any_filter_rejects() -> None:
    project, _first, second = _project()
    project.add_change_filter(IgnoreErrorChangeTypeFilter())
    project.add_change_filter(IgnoreIgnoredChangeFilter())
    error = Change(second, ChangeType.ERROR)
    second.add_explicit_change(error)

    assert error not in project.get_changes()
    assert [type(item) for item in project.change_filter.chain()] == [
        NullChangeFilter,
        IgnoreErrorChangeTypeFilter,
        IgnoreIgnoredChangeFilter,
    ]
    rejecting = project.change_filter.chain()[1]
    assert error in rejecting.filtered_changes
    assert rejecting.filtered_by_type() == {ChangeType.ERROR: 1}


def test_inactive_filter_passes_and_changes_revision() -> None:
    project, _first, second = _project()
    error_filter = IgnoreErrorChangeTypeFilter()
    project.add_change_filter(error_filter)
    error = Change(second, ChangeType.ERROR)
    second.add_explicit_change(error)
    revision = project.revision

    error_filter.active = False
    assert project.revision != revision
    assert error in project.get_changes()
    assert "(inactive)" in project.change_filter.description


def test_skip_changes_unless_added_before() -> None:
    project, _first, second = _project()
    year_filter = SkipChangesUnlessAddedBeforeChangeFilter(project, 1995)
    additions = {change.to_string: change for change in second.get_implicit_changes()}
    assert set(additions) == {"Beta beta"}
    assert not year_filter.test(additions["Beta beta"])

    rename = Change(second, ChangeType.RENAME, [project.names.get("Alpha", "alpha")], [project.names.get("Beta", "beta")])
    assert year_filter.test(rename)
    assert year_filter.to_attributes() == {"name": "skipChangesUnlessAddedBefore", "active": "yes", "year": "1995"}


def test_create_filter_from_attributes() -> None:
    project, _first, _second = _project()
    assert isinstance(create_filter(project, {"name": "ignoreIgnored"}), IgnoreIgnoredChangeFilter)
    inactive = create_filter(project, {"name": "ignoreErrorChangeType", "active": "no"})
    assert not inactive.active
    dated = create_filter(project, {"name": "skipChangesUnlessAddedBefore", "year": "2001"})
    assert isinstance(dated, SkipChangesUnlessAddedBeforeChangeFilter)
    assert dated.year == 2001


@pytest.mark.parametrize(
    "attributes",
    [
        {},
        {"name": "noSuchFilter"},
        {"name": "ignoreIgnored", "active": "maybe"},
        {"name": "skipChangesUnlessAddedBefore"},
        {"name": "skipChangesUnlessAddedBefore", "year": "soon"},
    ],
)
def test_create_filter_rejects_bad_attributes(attributes: dict) -> None:
    project, _first, _second = _project()
    with pytest.raises(FilterParseError):
        create_filter(project, attributes)
