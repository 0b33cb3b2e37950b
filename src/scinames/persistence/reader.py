"""Strict reader for project XML files, plain or gzip-compressed."""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set
from xml.etree import ElementTree as ET

from ..config.policies import Policies
from ..entities.change import Change, ChangeType, Citation
from ..entities.dataset import Dataset, DatasetRow
from ..entities.dates import SimplifiedDate
from ..entities.name import Name
from ..exceptions import NameExtractorParseError, ProjectParseError
from ..pipeline.filters import create_filter
from ..project import Project
from ..utils.logging import get_logger

_LOGGER = get_logger(module=__name__)

GZIP_MAGIC = b"\x1f\x8b"

_DATASET_ATTRIBUTES = {"name", "is_checklist", "type", "year", "month", "day", "nameExtractors"}
_NAME_ATTRIBUTES = {"genus", "specificEpithet", "infraspecificEpithets"}
_DATE_ATTRIBUTES = {"year", "month", "day"}


def is_gzip_file(path: Path) -> bool:
    with path.open("rb") as handle:
        return handle.read(2) == GZIP_MAGIC


def _check_attributes(element: ET.Element, allowed: Set[str], required: Iterable[str] = ()) -> None:
    for attribute in element.attrib:
        if attribute not in allowed:
            raise ProjectParseError(f"Unexpected attribute '{attribute}' on <{element.tag}>")
    for attribute in required:
        if attribute not in element.attrib:
            raise ProjectParseError(f"Missing attribute '{attribute}' on <{element.tag}>")


def _check_no_text(element: ET.Element) -> None:
    if element.text and element.text.strip():
        raise ProjectParseError(f"Unexpected text content in <{element.tag}>: {element.text.strip()[:40]!r}")
    for child in element:
        if child.tail and child.tail.strip():
            raise ProjectParseError(f"Unexpected text content in <{element.tag}>: {child.tail.strip()[:40]!r}")


def _children(element: ET.Element, allowed: Set[str], *, unique: Iterable[str] = ()) -> List[ET.Element]:
    _check_no_text(element)
    seen: Set[str] = set()
    once = set(unique)
    children = list(element)
    for child in children:
        if child.tag not in allowed:
            raise ProjectParseError(f"Unexpected element <{child.tag}> in <{element.tag}>")
        if child.tag in once and child.tag in seen:
            raise ProjectParseError(f"Element <{child.tag}> may only appear once in <{element.tag}>")
        seen.add(child.tag)
    return children


def _read_date(element: ET.Element) -> SimplifiedDate:
    try:
        return SimplifiedDate.from_attributes({key: element.attrib[key] for key in _DATE_ATTRIBUTES if key in element.attrib})
    except ValueError as exc:
        raise ProjectParseError(f"Invalid date on <{element.tag}>: {exc}") from exc


def _normalize_boolean(value: str) -> str:
    lowered = value.strip().lower()
    if lowered == "true":
        return "yes"
    if lowered == "false":
        return "no"
    return value


class ProjectXMLReader:
    """Builds a :class:`Project` from its XML form.

    Unknown elements or attributes are errors naming the offending tag;
    only an unparseable ``nameExtractors`` attribute is tolerated (logged,
    and the dataset keeps the default extractors).
    """

    def __init__(self, policies: Policies | None = None) -> None:
        self.policies = policies

    def read(self, path: Path | str) -> Project:
        source = Path(path)
        opener = gzip.open if is_gzip_file(source) else open
        try:
            with opener(source, "rb") as handle:
                root = ET.parse(handle).getroot()
        except ET.ParseError as exc:
            raise ProjectParseError(f"Malformed XML in {source}: {exc}") from exc
        except (OSError, EOFError) as exc:
            raise ProjectParseError(f"Could not read {source}: {exc}") from exc
        project = self.parse(root, file=source)
        _LOGGER.info("Loaded project", path=str(source), project=project.name, datasets=len(project.datasets))
        return project

    def parse(self, root: ET.Element, *, file: Optional[Path] = None) -> Project:
        if root.tag != "project":
            raise ProjectParseError(f"Expected <project> as the root element, found <{root.tag}>")
        _check_attributes(root, {"name"})
        project = Project(root.attrib.get("name", "Unnamed project"), file, policies=self.policies)
        for child in _children(root, {"properties", "filters", "datasets"}, unique=("properties", "filters", "datasets")):
            if child.tag == "properties":
                project.properties.update(self._read_properties(child))
            elif child.tag == "filters":
                _check_attributes(child, set())
                for element in _children(child, {"filter"}):
                    _check_attributes(element, {"name", "active", "year"}, required=("name",))
                    _check_no_text(element)
                    project.add_change_filter(create_filter(project, element.attrib))
            else:
                _check_attributes(child, set())
                for element in _children(child, {"dataset"}):
                    project.add_dataset(self._read_dataset(project, element))
        return project

    def _read_properties(self, element: ET.Element, *, normalize_booleans: bool = False) -> Dict[str, str]:
        _check_attributes(element, set())
        properties: Dict[str, str] = {}
        for child in _children(element, {"property"}):
            _check_attributes(child, {"name"}, required=("name",))
            if len(child):
                raise ProjectParseError(f"Unexpected element <{child[0].tag}> in <property>")
            key = child.attrib["name"]
            value = child.text or ""
            if normalize_booleans:
                value = _normalize_boolean(value)
            properties[key] = f"{properties[key]}\n{value}" if key in properties else value
        return properties

    def _read_dataset(self, project: Project, element: ET.Element) -> Dataset:
        _check_attributes(element, _DATASET_ATTRIBUTES, required=("name",))
        attributes = element.attrib
        dataset = Dataset(
            attributes["name"],
            _read_date(element),
            is_checklist=self._read_checklist_flag(element),
            registry=project.names,
        )
        extractors = attributes.get("nameExtractors")
        if extractors is not None and extractors.strip():
            try:
                dataset.set_name_extractors(extractors)
            except NameExtractorParseError as exc:
                _LOGGER.warning(
                    "Ignoring unparseable name extractors", dataset=dataset.name, extractors=extractors, error=str(exc)
                )

        rows: List[DatasetRow] = []
        for child in _children(
            element, {"properties", "changes", "columns", "rows"}, unique=("properties", "changes", "columns", "rows")
        ):
            _check_attributes(child, set())
            if child.tag == "properties":
                dataset.properties.update(self._read_properties(child))
            elif child.tag == "columns":
                columns = []
                for column in _children(child, {"column"}):
                    _check_attributes(column, {"name"}, required=("name",))
                    _check_no_text(column)
                    columns.append(column.attrib["name"])
                dataset.set_columns(columns)
            elif child.tag == "rows":
                rows.extend(self._read_row(row) for row in _children(child, {"row"}))
            else:
                for change in _children(child, {"change"}):
                    dataset.add_explicit_change(self._read_change(project, dataset, change))
        dataset.add_rows(rows)
        return dataset

    @staticmethod
    def _read_checklist_flag(element: ET.Element) -> bool:
        if "is_checklist" in element.attrib:
            value = element.attrib["is_checklist"].strip().lower()
            if value in {"yes", "true"}:
                return True
            if value in {"no", "false"}:
                return False
            raise ProjectParseError(f"Attribute 'is_checklist' on <dataset> must be yes or no, got {value!r}")
        dataset_type = element.attrib.get("type", "checklist").strip().lower()
        if dataset_type not in {"checklist", "dataset"}:
            raise ProjectParseError(f"Attribute 'type' on <dataset> must be checklist or dataset, got {dataset_type!r}")
        return dataset_type == "checklist"

    @staticmethod
    def _read_row(element: ET.Element) -> DatasetRow:
        _check_attributes(element, set())
        values: Dict[str, str] = {}
        for key in _children(element, {"key"}):
            _check_attributes(key, {"name"}, required=("name",))
            if len(key):
                raise ProjectParseError(f"Unexpected element <{key[0].tag}> in <key>")
            values[key.attrib["name"]] = key.text or ""
        return DatasetRow(values)

    def _read_change(self, project: Project, dataset: Dataset, element: ET.Element) -> Change:
        _check_attributes(element, {"type", "id"}, required=("type",))
        from_names: List[Name] = []
        to_names: List[Name] = []
        properties: Dict[str, str] = {}
        citations: List[Citation] = []
        for child in _children(
            element, {"from", "to", "properties", "citations"}, unique=("from", "to", "properties", "citations")
        ):
            if child.tag in ("from", "to"):
                _check_attributes(child, set())
                names = [self._read_name(project, name) for name in _children(child, {"name"})]
                (from_names if child.tag == "from" else to_names).extend(names)
            elif child.tag == "properties":
                properties = self._read_properties(child, normalize_booleans=True)
            else:
                _check_attributes(child, set())
                citations.extend(self._read_citation(citation) for citation in _children(child, {"citation"}))
        try:
            change_type = ChangeType.of(element.attrib["type"])
        except ValueError as exc:
            raise ProjectParseError(f"Invalid change type on <change>: {exc}") from exc
        return Change(
            dataset,
            change_type,
            from_names,
            to_names,
            change_id=element.attrib.get("id") or None,
            properties=properties,
            citations=citations,
        )

    @staticmethod
    def _read_name(project: Project, element: ET.Element) -> Name:
        _check_attributes(element, _NAME_ATTRIBUTES, required=("genus",))
        if len(element):
            raise ProjectParseError(f"Unexpected element <{element[0].tag}> in <name>")
        attributes = element.attrib
        try:
            name = Name(
                genus=attributes["genus"],
                specific_epithet=attributes.get("specificEpithet") or None,
                infraspecific_epithets=attributes.get("infraspecificEpithets") or (),
            )
        except ValueError as exc:
            raise ProjectParseError(f"Invalid <name> {dict(attributes)!r}: {exc}") from exc
        return project.names.canonical(name)

    def _read_citation(self, element: ET.Element) -> Citation:
        _check_attributes(element, _DATE_ATTRIBUTES | {"url"})
        text: Optional[str] = None
        properties: Dict[str, str] = {}
        tags: List[str] = []
        for child in _children(element, {"cite", "properties", "tags"}, unique=("cite", "properties", "tags")):
            if child.tag == "cite":
                _check_attributes(child, set())
                if len(child):
                    raise ProjectParseError(f"Unexpected element <{child[0].tag}> in <cite>")
                text = child.text or ""
            elif child.tag == "properties":
                properties = self._read_properties(child)
            else:
                _check_attributes(child, set())
                for tag in _children(child, {"tag"}):
                    _check_attributes(tag, set())
                    tags.append((tag.text or "").strip())
        if text is None:
            raise ProjectParseError("Missing <cite> in <citation>")
        return Citation(
            text=text,
            date=_read_date(element),
            url=element.attrib.get("url"),
            properties=properties,
            tags=tags,
        )


def read_project(path: Path | str, *, policies: Policies | None = None) -> Project:
    """Load the project stored at ``path``."""

    return ProjectXMLReader(policies).read(path)


__all__ = ["ProjectXMLReader", "read_project", "is_gzip_file", "GZIP_MAGIC"]
