"""Loading of the section/category layout expressed as YAML."""

from __future__ import annotations

import functools
import pathlib
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import yaml

from src.audit.errors import LayoutError

_DEFAULT_LAYOUT_PATH = pathlib.Path(__file__).resolve().with_name("layout.yaml")


@dataclass(slots=True, frozen=True)
class SectionLayout:
    """Configured section and the header field holding its score."""

    key: str
    title: str
    icon: str
    score_field: str
    temperature: bool = False

    @property
    def anchor(self) -> str:
        return f"section-{self.key}"


@dataclass(slots=True, frozen=True)
class CategoryLayout:
    """Category with its own score field and the sections rolled into it."""

    name: str
    score_field: str
    sections: tuple[str, ...]
    chart_sections: tuple[str, ...]

    @property
    def history_sections(self) -> tuple[str, ...]:
        """Section titles averaged for the historical comparison."""

        return self.sections or self.chart_sections or (self.name,)


@dataclass(slots=True, frozen=True)
class ReportLayout:
    """Ordered sections plus the category roll-up used by the report."""

    id: str
    title: str
    sections: tuple[SectionLayout, ...]
    categories: tuple[CategoryLayout, ...]

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ReportLayout":
        layout_id = str(payload.get("id") or "").strip()
        if not layout_id:
            raise ValueError("Layout is missing an 'id'.")

        raw_sections = payload.get("sections")
        if not isinstance(raw_sections, Sequence) or not raw_sections:
            raise ValueError("Layout must define a non-empty 'sections' list.")

        sections: list[SectionLayout] = []
        seen_keys: set[str] = set()
        for index, entry in enumerate(raw_sections):
            if not isinstance(entry, Mapping):
                raise ValueError(f"Section at index {index} is not a mapping.")
            key = str(entry.get("key") or "").strip()
            title = str(entry.get("title") or "").strip()
            score_field = str(entry.get("score_field") or "").strip()
            if not key or not title or not score_field:
                raise ValueError(
                    f"Section at index {index} needs 'key', 'title' and 'score_field'."
                )
            if key in seen_keys:
                raise ValueError(f"Section key '{key}' is defined twice.")
            seen_keys.add(key)
            sections.append(
                SectionLayout(
                    key=key,
                    title=title,
                    icon=str(entry.get("icon") or ""),
                    score_field=score_field,
                    temperature=bool(entry.get("temperature", False)),
                )
            )

        titles = {section.title for section in sections}
        categories: list[CategoryLayout] = []
        for index, entry in enumerate(payload.get("categories") or []):
            if not isinstance(entry, Mapping):
                raise ValueError(f"Category at index {index} is not a mapping.")
            name = str(entry.get("name") or "").strip()
            score_field = str(entry.get("score_field") or "").strip()
            if not name or not score_field:
                raise ValueError(f"Category at index {index} needs 'name' and 'score_field'.")
            members = tuple(str(title) for title in entry.get("sections") or [])
            chart_members = tuple(str(title) for title in entry.get("chart_sections") or [])
            unknown = [title for title in members + chart_members if title not in titles]
            if unknown:
                raise ValueError(
                    f"Category '{name}' references unknown sections: {', '.join(unknown)}."
                )
            categories.append(
                CategoryLayout(
                    name=name,
                    score_field=score_field,
                    sections=members,
                    chart_sections=chart_members,
                )
            )

        return cls(
            id=layout_id,
            title=str(payload.get("title") or layout_id),
            sections=tuple(sections),
            categories=tuple(categories),
        )

    def section_by_title(self, title: str) -> SectionLayout | None:
        for section in self.sections:
            if section.title == title:
                return section
        return None

    def score_field_for(self, title: str) -> str | None:
        section = self.section_by_title(title)
        return section.score_field if section is not None else None

    @property
    def score_fields(self) -> tuple[str, ...]:
        return tuple(section.score_field for section in self.sections)


def load_layout_file(source: str | pathlib.Path) -> ReportLayout:
    """Parse a layout from a YAML file, raising :class:`LayoutError` on problems."""

    path = pathlib.Path(source)
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise LayoutError(f"Unable to read layout '{path}': {exc}") from exc
    if not isinstance(payload, Mapping):
        raise LayoutError(f"Layout '{path}' must contain a mapping at the top level.")
    try:
        return ReportLayout.from_mapping(payload)
    except ValueError as exc:
        raise LayoutError(f"Invalid layout '{path}': {exc}") from exc


@functools.lru_cache(maxsize=4)
def load_layout(source: str | pathlib.Path | None = None) -> ReportLayout:
    """Load the default layout, optionally overriding the source path."""

    return load_layout_file(source if source is not None else _DEFAULT_LAYOUT_PATH)


__all__ = ["CategoryLayout", "ReportLayout", "SectionLayout", "load_layout", "load_layout_file"]
