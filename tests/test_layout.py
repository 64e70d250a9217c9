from __future__ import annotations

from pathlib import Path

import pytest

from src.audit.errors import LayoutError
from src.audit.reporting.layout import ReportLayout, load_layout, load_layout_file


def test_default_layout_sections_and_categories() -> None:
    layout = load_layout()
    assert len(layout.sections) == 13
    assert layout.sections[0].title == "Food Storage and Dry Storage"
    assert layout.score_field_for("Fridges and Freezers") == "FridgesScore"
    assert [section.key for section in layout.sections if section.temperature] == ["fridges"]
    assert [category.name for category in layout.categories] == [
        "Storage of Food",
        "Employees' Food Handling and Food Safety Culture",
        "Cleaning and Equipment Condition",
        "Maintenance",
        "Documentation",
    ]


def test_maintenance_category_uses_chart_sections_for_history() -> None:
    maintenance = next(category for category in load_layout().categories if category.name == "Maintenance")
    assert maintenance.sections == ()
    assert maintenance.history_sections == ("Maintenance",)


def test_unknown_category_member_is_rejected() -> None:
    payload = {
        "id": "x",
        "sections": [{"key": "a", "title": "A", "score_field": "AScore"}],
        "categories": [{"name": "Cat", "score_field": "CatScore", "sections": ["B"]}],
    }
    with pytest.raises(ValueError, match="unknown sections"):
        ReportLayout.from_mapping(payload)


def test_duplicate_section_key_is_rejected() -> None:
    entry = {"key": "a", "title": "A", "score_field": "AScore"}
    with pytest.raises(ValueError, match="defined twice"):
        ReportLayout.from_mapping({"id": "x", "sections": [entry, dict(entry, title="B")]})


def test_invalid_layout_file_raises_layout_error(tmp_path: Path) -> None:
    broken = tmp_path / "layout.yaml"
    broken.write_text("id: broken\nsections: []\n", encoding="utf-8")
    with pytest.raises(LayoutError):
        load_layout_file(broken)

    with pytest.raises(LayoutError):
        load_layout_file(tmp_path / "missing.yaml")
