from __future__ import annotations

import math
from datetime import datetime

import pytest

from src.audit.reporting.fields import (
    audit_date_of,
    auditor_of,
    clean_text,
    coefficient_display,
    comment_of,
    corrective_action_of,
    criteria_of,
    first_present,
    fridge_reading_from_mapping,
    historical_record_from_mapping,
    reference_of,
    response_item_from_mapping,
    score_of,
    store_id_of,
    store_name_of,
)
from src.audit.reporting.schemas import Choice, Severity


def test_comment_prefers_keys_in_order() -> None:
    assert comment_of({"comment": "a", "Comments": "b", "Note": "c"}) == "a"
    assert comment_of({"Comments": "b", "Note": "c"}) == "b"
    assert comment_of({"Note": "c"}) == "c"
    assert comment_of({}) == "-"


def test_blank_values_fall_through() -> None:
    assert first_present({"comment": "  ", "Comments": None, "Note": "n"}, ("comment", "Comments", "Note")) == "n"
    assert criteria_of({"Title": ""}) == "Criteria not specified"


def test_reference_falls_back_to_position() -> None:
    assert reference_of({"ReferenceValue": "3.4"}, 0) == "3.4"
    assert reference_of({}, 2) == "3"


def test_text_defaults() -> None:
    assert corrective_action_of({}) == "-"
    assert corrective_action_of({"CorrectiveAction": "Fix"}) == "Fix"
    assert auditor_of({}) == "System Generated"


def test_store_fallbacks() -> None:
    assert store_name_of({"Store_x0020_Name": "Mall"}, "ABC-0042") == "Mall"
    assert store_name_of({}, "ABC-0042") == "ABC"
    assert store_id_of({"StoreID": "0048"}) == "0048"
    assert store_id_of({}, "ABC-0042") == "ABC"


def test_score_of_rounds_half_up_and_defaults_to_zero() -> None:
    assert score_of({"FoodScore": 84.5}, "FoodScore") == 85
    assert score_of({"FoodScore": "90"}, "FoodScore") == 90
    assert score_of({"FoodScore": None}, "FoodScore") == 0
    assert score_of({"FoodScore": math.nan}, "FoodScore") == 0
    assert score_of({}, "FoodScore") == 0


def test_audit_date_parsing() -> None:
    assert audit_date_of({"AuditDate": "2024-06-12T09:30:00Z"}).year == 2024
    assert audit_date_of({"Created": datetime(2023, 1, 2)}) == datetime(2023, 1, 2)
    assert audit_date_of({"AuditDate": "yesterday"}) is None


def test_clean_text_escapes_before_formatting() -> None:
    assert clean_text("<b>hot</b>\nline\tend") == "&lt;b&gt;hot&lt;/b&gt;<br>line    end"
    assert clean_text(None) == ""


def test_response_item_from_mapping() -> None:
    item = response_item_from_mapping(
        {"Id": "2", "Title": "Labels", "Coef": "4", "Answer": "Partially", "Severity": "critical"},
        index=1,
    )
    assert item.reference_value == "2"
    assert item.coefficient == 4.0
    assert item.selected_choice is Choice.PARTIALLY
    assert item.value == 2.0
    assert item.severity is Severity.HIGH
    assert item.needs_corrective_action
    assert coefficient_display(item) == "4"


def test_na_item_hides_coefficient() -> None:
    item = response_item_from_mapping({"Coeff": 3, "SelectedChoice": "NA"}, index=0)
    assert item.value is None
    assert not item.needs_corrective_action
    assert coefficient_display(item) == ""


def test_unrecognised_answer_scores_zero() -> None:
    item = response_item_from_mapping({"Coeff": 2, "SelectedChoice": "Later"}, index=0)
    assert item.selected_choice is None
    assert item.answer_label == "Later"
    assert item.value == 0.0


def test_fridge_reading_uses_shared_reference() -> None:
    reading = fridge_reading_from_mapping({"ID": 7, "Unit": "Chiller", "Display": 7.5}, "2.26")
    assert reading.reading_id == "7"
    assert reading.reference_value == "2.26"
    assert reading.display == "7.5"
    assert reading.probe == "-"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1.2; 9.3", ["1.2", "9.3"]), (["1.2"], ["1.2"]), (None, []), (math.nan, [])],
)
def test_historical_record_failed_references(raw, expected) -> None:
    record = historical_record_from_mapping(
        {"DocumentNumber": "D-1", "StoreID": "0048", "Cycle": "C2", "FoodScore": "88", "FailedReferences": raw},
        ["FoodScore", "FridgesScore"],
    )
    assert record.failed_references == expected
    assert record.section_scores == {"FoodScore": 88.0, "FridgesScore": None}
