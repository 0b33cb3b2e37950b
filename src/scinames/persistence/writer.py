"""Writer for project XML files."""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import Dict, Optional
from xml.etree import ElementTree as ET

from ..entities.change import Change, Citation
from ..entities.dataset import Dataset
from ..entities.name import Name
from ..pipeline.filters import NullChangeFilter
from ..project import Project
from ..utils.helpers import ensure_directory
from ..utils.logging import get_logger

_LOGGER = get_logger(module=__name__)


def _add_properties(parent: ET.Element, properties: Dict[str, str]) -> None:
    if not properties:
        return
    element = ET.SubElement(parent, "properties")
    for key, value in properties.items():
        ET.SubElement(element, "property", {"name": key}).text = value


def _add_name(parent: ET.Element, name: Name) -> None:
    attributes = {"genus": name.genus}
    if name.specific_epithet is not None:
        attributes["specificEpithet"] = name.specific_epithet
    if name.infraspecific_epithets:
        attributes["infraspecificEpithets"] = name.infraspecific_epithets_as_string
    ET.SubElement(parent, "name", attributes).text = name.full_name


class ProjectXMLWriter:
    """Serialises a project into the layout :class:`ProjectXMLReader` accepts."""

    def __init__(self, *, indent: bool = True) -> None:
        self.indent = indent

    def build(self, project: Project) -> ET.Element:
        root = ET.Element("project", {"name": project.name})
        _add_properties(root, project.properties)

        filters = [item for item in project.change_filter.chain() if not isinstance(item, NullChangeFilter)]
        if filters:
            element = ET.SubElement(root, "filters")
            for change_filter in filters:
                ET.SubElement(element, "filter", change_filter.to_attributes())

        datasets = ET.SubElement(root, "datasets")
        for dataset in project.datasets:
            self._add_dataset(datasets, dataset)
        if self.indent:
            ET.indent(root)
        return root

    def _add_dataset(self, parent: ET.Element, dataset: Dataset) -> None:
        attributes = {"name": dataset.name, "is_checklist": "yes" if dataset.is_checklist else "no"}
        attributes.update(dataset.date.to_attributes())
        if dataset.name_extractors_explicit:
            attributes["nameExtractors"] = dataset.name_extractors_as_string
        element = ET.SubElement(parent, "dataset", attributes)
        _add_properties(element, dataset.properties)

        changes = ET.SubElement(element, "changes")
        for change in dataset.explicit_changes:
            self._add_change(changes, change)

        columns = ET.SubElement(element, "columns")
        for column in dataset.columns:
            ET.SubElement(columns, "column", {"name": column.name})

        rows = ET.SubElement(element, "rows")
        for row in dataset.rows:
            row_element = ET.SubElement(rows, "row")
            for column, value in row.items():
                ET.SubElement(row_element, "key", {"name": column.name}).text = value

    def _add_change(self, parent: ET.Element, change: Change) -> None:
        element = ET.SubElement(parent, "change", {"id": change.id, "type": change.type.type})
        for tag, names in (("from", change.from_names), ("to", change.to_names)):
            side = ET.SubElement(element, tag)
            for name in names:
                _add_name(side, name)
        _add_properties(element, change.properties)
        if change.citations:
            citations = ET.SubElement(element, "citations")
            for citation in change.citations:
                self._add_citation(citations, citation)

    @staticmethod
    def _add_citation(parent: ET.Element, citation: Citation) -> None:
        attributes = citation.date.to_attributes() if citation.date.is_set else {}
        if citation.url:
            attributes["url"] = citation.url
        element = ET.SubElement(parent, "citation", attributes)
        ET.SubElement(element, "cite").text = citation.text
        if citation.tags:
            tags = ET.SubElement(element, "tags")
            for tag in citation.tags:
                ET.SubElement(tags, "tag").text = tag
        _add_properties(element, citation.properties)

    def write(self, project: Project, path: Path | str, *, compress: Optional[bool] = None) -> Path:
        """Write ``project`` to ``path`` through a temporary file.

        ``compress`` defaults to the file suffix: ``.gz`` compresses and
        ``.xml`` does not; any other suffix follows the persistence policy.
        """

        target = Path(path)
        if compress is None:
            if target.suffix == ".gz":
                compress = True
            elif target.suffix == ".xml":
                compress = False
            else:
                compress = project.policies.persistence.compress
        ensure_directory(target.parent)
        tree = ET.ElementTree(self.build(project))
        temp_path = target.with_name(target.name + ".tmp")
        opener = gzip.open if compress else open
        with opener(temp_path, "wb") as handle:
            tree.write(handle, encoding="utf-8", xml_declaration=True)
        temp_path.replace(target)
        _LOGGER.info(
            "Wrote project",
            path=str(target),
            project=project.name,
            datasets=len(project.datasets),
            compress=compress,
        )
        return target


def write_project(project: Project, path: Path | str, *, compress: Optional[bool] = None) -> Path:
    """Save ``project`` to ``path``; see :meth:`ProjectXMLWriter.write`."""

    writer = ProjectXMLWriter(indent=project.policies.persistence.indent)
    return writer.write(project, path, compress=compress)


__all__ = ["ProjectXMLWriter", "write_project"]
