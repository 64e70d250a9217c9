from __future__ import annotations

import json
import runpy
import shutil
from pathlib import Path

import httpx
import pytest

from src.audit.config import Settings
from src.audit.errors import AttachmentFetchError, SourceUnavailableError
from src.audit.reporting.assembler import build_assembler
from src.audit.reporting.layout import load_layout
from src.audit.reporting.schemas import ImageAttachment
from src.audit.sources.files import (
    CsvHistoricalSource,
    FileAttachmentProvider,
    FileResponseProvider,
    FileThresholdSource,
)
from tests.fakes import PNG_BYTES

SAMPLES = Path(__file__).resolve().parents[1] / "data" / "samples"
SAMPLE_ID = "GMRL-FSACR-0048"


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    target = tmp_path / "samples"
    shutil.copytree(SAMPLES, target)
    return target


def test_sample_report_end_to_end(data_dir: Path) -> None:
    assembler = build_assembler(Settings(data_dir=data_dir, attachment_workers=2))
    result = assembler.generate_report(SAMPLE_ID)

    assert result.success
    document = result.document
    assert document.store_id == "0048"
    assert document.overall_score == 86
    fridges = next(section for section in document.sections if section.key == "fridges")
    chiller = fridges.items[0]
    assert chiller.repeat_count == 2
    assert [image.file_name for image in chiller.before_images] == ["chiller.png"]
    assert [image.file_name for image in chiller.after_images] == ["chiller-fixed.png"]
    assert fridges.fridges.findings[0].images[0].data_url.startswith("data:image/png;base64,")
    assert document.trend[-1].values[:3] == ("86%", "82%", "79%")


def test_unknown_and_unsafe_document_ids(data_dir: Path) -> None:
    provider = FileResponseProvider(data_dir)
    assert provider.get_document("NOPE-1") is None
    assert provider.get_document("../thresholds") is None
    assert provider.get_section_items("NOPE-1", "fridges") == []


def test_corrupt_document_raises_source_error(data_dir: Path) -> None:
    (data_dir / "documents" / "BROKEN-1.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(SourceUnavailableError):
        FileResponseProvider(data_dir).get_document("BROKEN-1")
    result = build_assembler(Settings(data_dir=data_dir)).generate_report("BROKEN-1")
    assert not result.success


def test_attachment_path_must_stay_inside_data_dir(data_dir: Path) -> None:
    provider = FileAttachmentProvider(data_dir)
    ok = ImageAttachment(composite_id="D-1-1", file_name="a.png", path="images/pixel.png")
    escape = ImageAttachment(composite_id="D-1-2", file_name="b.png", path="../../etc/passwd")
    missing = ImageAttachment(composite_id="D-1-3", file_name="c.png")

    assert provider.fetch_binary(ok) == PNG_BYTES
    with pytest.raises(AttachmentFetchError):
        provider.fetch_binary(escape)
    with pytest.raises(AttachmentFetchError):
        provider.fetch_binary(missing)


def test_attachment_download_over_http(data_dir: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/ok.png":
            return httpx.Response(200, content=b"binary")
        return httpx.Response(404)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    provider = FileAttachmentProvider(data_dir, client=client)
    ok = ImageAttachment(composite_id="D-1-1", file_name="ok.png", url="https://cdn.test/ok.png")
    gone = ImageAttachment(composite_id="D-1-2", file_name="gone.png", url="https://cdn.test/gone.png")

    assert provider.fetch_binary(ok) == b"binary"
    with pytest.raises(AttachmentFetchError):
        provider.fetch_binary(gone)
    provider.close()


def test_threshold_file(data_dir: Path) -> None:
    assert FileThresholdSource(data_dir).get_thresholds()["SectionPassingScore"] == 89
    with pytest.raises(SourceUnavailableError):
        FileThresholdSource(data_dir, "missing.json").get_thresholds()


def test_history_csv_is_sorted_and_filtered(data_dir: Path) -> None:
    source = CsvHistoricalSource(data_dir, load_layout().score_fields)
    records = source.get_records_for_store("0048")

    assert [record.document_id for record in records] == [
        "GMRL-FSACR-0031",
        "GMRL-FSACR-0019",
        "GMRL-FSACR-0007",
    ]
    assert records[0].failed_references == ["2.1", "9.3"]
    assert records[1].section_scores["CNDScore"] is None
    assert source.get_records_for_store("9999") == []


def test_missing_history_file_raises(tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailableError):
        CsvHistoricalSource(tmp_path, ["FoodScore"]).get_records_for_store("0048")


def test_cli_writes_json_report(data_dir: Path, tmp_path: Path) -> None:
    script = Path(__file__).resolve().parents[1] / "scripts" / "generate_report.py"
    main = runpy.run_path(str(script))["main"]
    output = tmp_path / "out"

    assert main([SAMPLE_ID, "--data-dir", str(data_dir), "--output", str(output), "--format", "json"]) == 0
    (written,) = output.glob(f"Food_Safety_Audit_Report_{SAMPLE_ID}_*.json")
    payload = json.loads(written.read_text(encoding="utf-8"))
    assert payload["document_id"] == SAMPLE_ID

    assert main(["NOPE-1", "--data-dir", str(data_dir), "--output", str(output)]) == 1
