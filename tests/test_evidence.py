from __future__ import annotations

from src.audit.evidence import (
    EvidenceClassifier,
    extract_question_id,
    filter_by_corrective,
    group_by_question,
    is_corrective_flag,
    picture_cell,
    render_gallery,
)
from src.audit.evidence.classifier import mime_type_for, to_data_url
from src.audit.evidence.gallery import MISSING_CORRECTIVE, NO_EVIDENCE, NO_PICTURE
from src.audit.reporting.schemas import ImageAttachment
from tests.fakes import PNG_BYTES, FakeAttachments


def test_extract_question_id() -> None:
    assert extract_question_id("DOC-1-87") == "87"
    assert extract_question_id("GMRL-FSACR-0048-87") == "87"
    assert extract_question_id("DOC-1") == "DOC-1"
    assert extract_question_id("87") == "87"
    assert extract_question_id(None) == ""


def test_group_by_question_keeps_both_images() -> None:
    images = [
        ImageAttachment(composite_id="DOC-1-87", file_name="a.jpg"),
        ImageAttachment(composite_id="DOC-1-87", file_name="b.jpg"),
        ImageAttachment(composite_id="DOC-1", file_name="c.jpg"),
    ]
    grouped = group_by_question(images)
    assert [image.file_name for image in grouped["87"]] == ["a.jpg", "b.jpg"]
    assert [image.file_name for image in grouped["DOC-1"]] == ["c.jpg"]


def test_corrective_flag_variants() -> None:
    assert is_corrective_flag(True)
    assert is_corrective_flag("true")
    assert is_corrective_flag("TRUE")
    assert is_corrective_flag(1)
    assert not is_corrective_flag("yes")
    assert not is_corrective_flag(0)
    assert not is_corrective_flag(None)


def test_filter_by_corrective_on_raw_mappings() -> None:
    raw = [
        {"composite_id": "DOC-1-5", "Iscorrective": "true"},
        {"composite_id": "DOC-1-5", "IsCorrective": False},
        {"composite_id": "DOC-1-5"},
    ]
    assert filter_by_corrective(raw, True) == [raw[0]]
    assert filter_by_corrective(raw, False) == raw[1:]


def test_data_url_mime_type() -> None:
    assert mime_type_for("photo.PNG") == "image/png"
    assert mime_type_for("photo") == "image/jpeg"
    assert to_data_url(b"abc", "x.gif") == "data:image/gif;base64,YWJj"


def test_collect_skips_failed_downloads_only() -> None:
    provider = FakeAttachments(
        [
            ImageAttachment(composite_id="DOC-1-87", file_name="ok.png"),
            ImageAttachment(composite_id="DOC-1-87", file_name="broken.png"),
            ImageAttachment(composite_id="DOC-1-88", file_name="other.jpg", is_corrective=True),
        ],
        failing=["broken.png"],
    )
    grouped = EvidenceClassifier(provider, workers=3).collect("DOC-1")

    assert [image.file_name for image in grouped["87"]] == ["ok.png"]
    assert grouped["87"][0].data_url.startswith("data:image/png;base64,")
    assert grouped["88"][0].is_corrective
    assert sorted(provider.fetched) == ["broken.png", "ok.png", "other.jpg"]


def test_collect_survives_listing_failure() -> None:
    provider = FakeAttachments([], listing_error=True)
    assert EvidenceClassifier(provider).collect("DOC-1") == {}
    assert EvidenceClassifier(None).collect("DOC-1") == {}


def test_render_gallery_placeholders() -> None:
    embedded = ImageAttachment(
        composite_id="DOC-1-87", file_name="a.png", data_url=to_data_url(PNG_BYTES, "a.png")
    )
    assert render_gallery([]) == NO_EVIDENCE
    assert render_gallery([], corrective=True, flagged=True) == MISSING_CORRECTIVE
    assert render_gallery([], corrective=True) == NO_EVIDENCE
    assert 'alt="After 1"' in render_gallery([embedded], corrective=True)
    assert picture_cell([]) == NO_PICTURE
    assert "picture-cell__image" in picture_cell([embedded])
