from __future__ import annotations

"""HTML rendering of assembled audit reports."""

import html
from typing import Any, Iterable

from src.audit.evidence.gallery import picture_cell, render_gallery
from src.audit.reporting.action_plan import item_priority
from src.audit.reporting.fields import clean_text, coefficient_display
from src.audit.reporting.schemas import (
    ActionPlan,
    AuditDocument,
    ChartPoint,
    FridgeReading,
    FridgeTables,
    ResponseItem,
    ScoreStatus,
    Section,
    TrendRow,
)
from src.audit.scoring.engine import answer_class, format_score, severity_class

__all__ = ["build_report_html", "format_finding"]


_EXPORT_CSS = """
:root {
  color-scheme: light;
}
body {
  margin: 0;
  background: #f8fafc;
  font-family: 'Inter', 'Segoe UI', system-ui, -apple-system, sans-serif;
  color: #1f2937;
}
main.report {
  max-width: 1100px;
  margin: 0 auto;
  padding: 48px 40px 64px;
  background: #ffffff;
  border-radius: 32px;
  box-shadow: 0 24px 60px -36px rgba(15, 23, 42, 0.4);
}
.report__header {
  display: flex;
  flex-wrap: wrap;
  align-items: flex-start;
  justify-content: space-between;
  gap: 16px;
  padding-bottom: 24px;
  border-bottom: 1px solid #e2e8f0;
}
.report__eyebrow {
  font-size: 12px;
  font-weight: 600;
  letter-spacing: 0.32em;
  text-transform: uppercase;
  color: #64748b;
  margin-bottom: 8px;
}
.report__meta {
  font-size: 13px;
  color: #475569;
  margin-top: 6px;
}
.report__status {
  text-align: right;
}
.report__score {
  font-size: 40px;
  font-weight: 700;
  color: #0f172a;
  margin-top: 10px;
}
.badge {
  display: inline-flex;
  align-items: center;
  justify-content: center;
  border-radius: 999px;
  padding: 6px 14px;
  font-size: 12px;
  font-weight: 600;
  letter-spacing: 0.18em;
  text-transform: uppercase;
}
.badge--pass {
  background: rgba(16, 185, 129, 0.14);
  color: #047857;
}
.badge--fail {
  background: rgba(239, 68, 68, 0.14);
  color: #b91c1c;
}
.badge--nodata {
  background: rgba(148, 163, 184, 0.2);
  color: #475569;
}
.banner {
  margin-top: 24px;
  padding: 16px 20px;
  border-radius: 18px;
  font-weight: 600;
}
.banner--pass {
  background: rgba(16, 185, 129, 0.12);
  color: #047857;
}
.banner--fail {
  background: rgba(239, 68, 68, 0.12);
  color: #b91c1c;
}
.banner--nodata {
  background: rgba(148, 163, 184, 0.16);
  color: #475569;
}
.section {
  margin-top: 36px;
}
.section h2 {
  font-size: 18px;
  margin-bottom: 12px;
  color: #0f172a;
}
.section h3 {
  font-size: 15px;
  margin: 20px 0 8px;
  color: #0f172a;
}
.stat-grid {
  margin-top: 18px;
  display: grid;
  gap: 14px;
  grid-template-columns: repeat(auto-fit, minmax(160px, 1fr));
}
.stat {
  background: rgba(226, 232, 240, 0.5);
  border-radius: 18px;
  padding: 14px;
}
.stat__label {
  font-size: 11px;
  letter-spacing: 0.28em;
  text-transform: uppercase;
  color: #64748b;
  margin-bottom: 6px;
}
.stat__value {
  font-size: 16px;
  font-weight: 600;
  color: #0f172a;
}
.table {
  width: 100%;
  border-collapse: collapse;
  margin-top: 16px;
}
.table th {
  text-transform: uppercase;
  letter-spacing: 0.12em;
  font-size: 11px;
  font-weight: 600;
  color: #64748b;
  text-align: left;
  padding: 10px 12px;
  background: #f8fafc;
}
.table td {
  padding: 12px;
  border-top: 1px solid #e2e8f0;
  font-size: 13px;
  vertical-align: top;
}
.table tr.row--category td {
  background: #e2e8f0;
  font-weight: 600;
}
.table tr.row--total td {
  background: #f1f5f9;
  font-weight: 700;
}
.table td.indent {
  padding-left: 28px;
}
.tag {
  display: inline-flex;
  align-items: center;
  justify-content: center;
  border-radius: 999px;
  font-size: 11px;
  font-weight: 600;
  padding: 4px 10px;
}
.answer-yes {
  background: rgba(16, 185, 129, 0.14);
  color: #047857;
}
.answer-partial {
  background: rgba(245, 158, 11, 0.16);
  color: #b45309;
}
.answer-no {
  background: rgba(239, 68, 68, 0.14);
  color: #b91c1c;
}
.answer-na {
  background: rgba(148, 163, 184, 0.2);
  color: #475569;
}
.severity-high {
  color: #b91c1c;
  font-weight: 600;
}
.severity-medium {
  color: #b45309;
  font-weight: 600;
}
.severity-low {
  color: #1d4ed8;
  font-weight: 600;
}
.repeat-badge {
  display: inline-block;
  margin-left: 6px;
  font-size: 11px;
  color: #7c3aed;
}
.good-observation {
  color: #15803d;
  font-weight: 600;
}
.corrective__header {
  margin-top: 20px;
  padding: 10px 14px;
  border-radius: 12px 12px 0 0;
  color: #ffffff;
  font-weight: 600;
}
.corrective__header--open {
  background: #dc2626;
}
.corrective__header--clear {
  background: #16a34a;
}
.gallery,
.picture-cell {
  display: flex;
  flex-wrap: wrap;
  gap: 6px;
}
.gallery__image,
.picture-cell__image {
  width: 96px;
  height: 96px;
  object-fit: cover;
  border-radius: 8px;
}
.no-evidence {
  color: #cbd5e1;
}
.missing-corrective {
  color: #f97316;
}
.chart {
  margin-top: 16px;
}
.chart__row {
  display: flex;
  align-items: center;
  gap: 12px;
  margin: 4px 0;
  font-size: 13px;
}
.chart__label {
  width: 320px;
  white-space: pre;
}
.chart__row--category .chart__label {
  font-weight: 600;
}
.chart__bar {
  height: 12px;
  border-radius: 6px;
  background: #2563eb;
}
.empty {
  font-size: 13px;
  color: #94a3b8;
  font-style: italic;
}
@page {
  size: A4;
  margin: 18mm 14mm;
}
"""

_GOOD_OBSERVATION = ("Good Observation", "Good observation")


def _escape(value: Any) -> str:
    """HTML-escape a value, returning an empty string for ``None``."""

    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return html.escape(str(value))


def _status_class(status: ScoreStatus, prefix: str) -> str:
    if status is ScoreStatus.PASS:
        return f"{prefix}--pass"
    if status is ScoreStatus.FAIL:
        return f"{prefix}--fail"
    return f"{prefix}--nodata"


def format_finding(text: str) -> str:
    """Clean a finding and highlight whatever follows a "Good Observation" marker."""

    finding = clean_text(text or "-")
    for keyword in _GOOD_OBSERVATION:
        if keyword in finding:
            before, _, after = finding.partition(keyword)
            if after.strip():
                return f"{before}{keyword}<span class=\"good-observation\">{after}</span>"
            break
    return finding


def _repeat_badge(count: int) -> str:
    if count <= 0:
        return ""
    return (
        f"<span class=\"repeat-badge\" title=\"Found in {count} previous audit(s)\">"
        f"\U0001f504 {count}x</span>"
    )


def _render_header(document: AuditDocument) -> str:
    audit_date = document.audit_date.strftime("%Y-%m-%d") if document.audit_date else "-"
    generated = document.generated_at.strftime("%Y-%m-%d %H:%M UTC")
    cycle = f" · Cycle {_escape(document.cycle_label)}" if document.cycle_label else ""
    return (
        "<header class=\"report__header\">"
        "<div>"
        "<div class=\"report__eyebrow\">Food Safety Audit</div>"
        f"<h1>{_escape(document.store_name)}</h1>"
        f"<div class=\"report__meta\">Document {_escape(document.document_id)}{cycle}</div>"
        f"<div class=\"report__meta\">Audit date {audit_date} · Auditor {_escape(document.auditor)}</div>"
        f"<div class=\"report__meta\">Generated on {generated}</div>"
        "</div>"
        "<div class=\"report__status\">"
        f"<span class=\"badge {_status_class(document.status, 'badge')}\">{_escape(document.status.value)}</span>"
        f"<div class=\"report__score\">{document.emoji} {format_score(document.overall_score)}</div>"
        "</div>"
        "</header>"
    )


def _render_summary(document: AuditDocument) -> str:
    thresholds = document.threshold_set
    passed = sum(1 for section in document.sections if section.status is ScoreStatus.PASS)
    stats = [
        ("Overall score", format_score(document.overall_score)),
        ("Passing mark", f"{thresholds.overall}%"),
        ("Sections passed", f"{passed} / {len(document.sections)}"),
        ("Corrective actions", str(len(document.action_plan.items))),
    ]
    items = "".join(
        "<div class=\"stat\">"
        f"<div class=\"stat__label\">{_escape(label)}</div>"
        f"<div class=\"stat__value\">{_escape(value)}</div>"
        "</div>"
        for label, value in stats
    )
    banner = (
        f"<div class=\"banner {_status_class(document.status, 'banner')}\">"
        f"{_escape(document.performance)} (passing mark {thresholds.overall}%)</div>"
    )
    return f"{banner}<div class=\"stat-grid\">{items}</div>"


def _render_trend(rows: Iterable[TrendRow]) -> str:
    items = list(rows)
    if not items:
        return "<p class=\"empty\">No score history available.</p>"
    body: list[str] = []
    for row in items:
        if row.is_total:
            css, label_css = " class=\"row--total\"", ""
        elif row.is_category:
            css, label_css = " class=\"row--category\"", ""
        else:
            css, label_css = "", " class=\"indent\""
        cells = "".join(f"<td>{_escape(value)}</td>" for value in row.values)
        body.append(f"<tr{css}><td{label_css}>{_escape(row.label)}</td>{cells}</tr>")
    header = "<thead><tr><th scope=\"col\">Category / Section</th>" + "".join(
        f"<th scope=\"col\">C{index}</th>" for index in range(1, 7)
    ) + "</tr></thead>"
    return f"<table class=\"table\">{header}<tbody>{''.join(body)}</tbody></table>"


def _render_chart(points: Iterable[ChartPoint]) -> str:
    items = list(points)
    if not items:
        return "<p class=\"empty\">No scores to chart.</p>"
    rows: list[str] = []
    for point in items:
        css = "chart__row chart__row--category" if point.is_category else "chart__row"
        width = max(0, min(100, point.score))
        label = _escape(point.name)
        if point.section_id:
            label = f"<a href=\"#{_escape(point.section_id)}\">{label}</a>"
        rows.append(
            f"<div class=\"{css}\">"
            f"<span class=\"chart__label\">{label}</span>"
            f"<span class=\"chart__bar\" style=\"width: {width * 3}px\"></span>"
            f"<span>{point.score}%</span>"
            "</div>"
        )
    return f"<div class=\"chart\">{''.join(rows)}</div>"


def _render_details(items: Iterable[ResponseItem]) -> str:
    rows_data = list(items)
    if not rows_data:
        return "<p class=\"empty\">No data available for this section.</p>"
    rows = "".join(
        "<tr>"
        f"<td>{_escape(item.reference_value)}</td>"
        f"<td>{_escape(item.criteria_text)}</td>"
        f"<td><span class=\"tag {answer_class(item.selected_choice)}\">{_escape(item.answer_label)}</span></td>"
        f"<td>{_escape(coefficient_display(item))}</td>"
        f"<td>{clean_text(item.comment)}</td>"
        f"<td>{render_gallery(item.before_images)}</td>"
        "</tr>"
        for item in rows_data
    )
    header = (
        "<thead><tr><th scope=\"col\">#</th><th scope=\"col\">Criteria</th>"
        "<th scope=\"col\">Answer</th><th scope=\"col\">Coeff</th>"
        "<th scope=\"col\">Comments</th><th scope=\"col\">Pictures</th></tr></thead>"
    )
    return f"<table class=\"table\">{header}<tbody>{rows}</tbody></table>"


def _render_corrective(items: Iterable[ResponseItem]) -> str:
    corrective = list(items)
    if not corrective:
        return (
            "<div class=\"corrective__header corrective__header--clear\">"
            "✅ NO CORRECTIVE ACTIONS REQUIRED</div>"
            "<p class=\"empty\">All items in this section meet the required standards.</p>"
        )
    rows: list[str] = []
    for item in corrective:
        severity = item_priority(item)
        rows.append(
            "<tr>"
            f"<td>{_escape(item.reference_value)}{_repeat_badge(item.repeat_count)}</td>"
            f"<td>{_escape(item.criteria_text)}</td>"
            f"<td>{format_finding(item.finding)}</td>"
            f"<td class=\"{severity_class(severity)}\">{_escape(severity.value)}</td>"
            f"<td>{render_gallery(item.after_images, corrective=True, flagged=True)}</td>"
            f"<td>{clean_text(item.corrective_action_text)}</td>"
            "</tr>"
        )
    header = (
        "<thead><tr><th scope=\"col\">#</th><th scope=\"col\">Criteria</th>"
        "<th scope=\"col\">Finding</th><th scope=\"col\">Severity</th>"
        "<th scope=\"col\">After</th><th scope=\"col\">Corrective action</th></tr></thead>"
    )
    return (
        "<div class=\"corrective__header corrective__header--open\">"
        f"⚠️ CORRECTIVE ACTIONS ({len(corrective)})</div>"
        f"<table class=\"table\">{header}<tbody>{''.join(rows)}</tbody></table>"
    )


def _fridge_rows(readings: Iterable[FridgeReading], *, with_issue: bool, label: str) -> str:
    rows: list[str] = []
    for reading in readings:
        issue = f"<td>{clean_text(reading.issue)}</td>" if with_issue else ""
        rows.append(
            "<tr>"
            f"<td>{_escape(reading.reference_value)}</td>"
            f"<td>{_escape(reading.unit)}</td>"
            f"<td>{_escape(reading.display)}</td>"
            f"<td>{_escape(reading.probe)}</td>"
            f"{issue}"
            f"<td>{picture_cell(reading.images, label)}</td>"
            "</tr>"
        )
    return "".join(rows)


def _render_fridges(tables: FridgeTables | None) -> str:
    if tables is None:
        return ""
    parts: list[str] = []
    columns = (
        "<th scope=\"col\">#</th><th scope=\"col\">Unit (°C)</th>"
        "<th scope=\"col\">Display (°C)</th><th scope=\"col\">Probe (°C)</th>"
    )
    if tables.findings:
        parts.append(
            "<div class=\"corrective__header corrective__header--open\">⚠️ FRIDGES WITH FINDINGS</div>"
            f"<table class=\"table\"><thead><tr>{columns}<th scope=\"col\">Issue</th>"
            "<th scope=\"col\">Pictures</th></tr></thead>"
            f"<tbody>{_fridge_rows(tables.findings, with_issue=True, label='Finding')}</tbody></table>"
        )
    if tables.compliant:
        parts.append(
            "<div class=\"corrective__header corrective__header--clear\">✅ COMPLIANT FRIDGES</div>"
            f"<table class=\"table\"><thead><tr>{columns}"
            "<th scope=\"col\">Pictures</th></tr></thead>"
            f"<tbody>{_fridge_rows(tables.compliant, with_issue=False, label='Compliant')}</tbody></table>"
        )
    return "".join(parts)


def _render_section(section: Section) -> str:
    return (
        f"<section class=\"section\" id=\"{_escape(section.anchor)}\">"
        f"<h2>{_escape(section.icon)} {_escape(section.title)} "
        f"<span class=\"badge {_status_class(section.status, 'badge')}\">"
        f"{section.emoji} {format_score(section.score)} · {_escape(section.status.value)}</span></h2>"
        f"{_render_details(section.items)}"
        f"{_render_corrective(section.corrective_items)}"
        f"{_render_fridges(section.fridges)}"
        "</section>"
    )


def _render_action_plan(plan: ActionPlan) -> str:
    if not plan.items:
        return "<p class=\"empty\">No corrective actions were raised.</p>"
    counts = (
        "<div class=\"stat-grid\">"
        + "".join(
            "<div class=\"stat\">"
            f"<div class=\"stat__label\">{label}</div>"
            f"<div class=\"stat__value\">{value}</div>"
            "</div>"
            for label, value in (
                ("High priority", plan.high),
                ("Medium priority", plan.medium),
                ("Low priority", plan.low),
                ("Repetitive", plan.repetitive),
            )
        )
        + "</div>"
    )
    rows = "".join(
        "<tr>"
        f"<td class=\"{severity_class(entry.priority)}\">{_escape(entry.priority.value)}</td>"
        f"<td>{_escape(entry.section)}</td>"
        f"<td>{_escape(entry.reference_value)}{_repeat_badge(entry.repeat_count)}</td>"
        f"<td>{_escape(entry.criteria_text)}</td>"
        f"<td>{format_finding(entry.finding)}</td>"
        f"<td>{clean_text(entry.corrective_action_text)}</td>"
        "</tr>"
        for entry in plan.items
    )
    header = (
        "<thead><tr><th scope=\"col\">Priority</th><th scope=\"col\">Section</th>"
        "<th scope=\"col\">#</th><th scope=\"col\">Criteria</th>"
        "<th scope=\"col\">Finding</th><th scope=\"col\">Corrective action</th></tr></thead>"
    )
    return f"{counts}<table class=\"table\">{header}<tbody>{rows}</tbody></table>"


def build_report_html(document: AuditDocument) -> str:
    """Render a standalone HTML document for an assembled audit."""

    sections_html = "".join(_render_section(section) for section in document.sections)
    title = f"Food Safety Audit Report {document.document_id}"

    return (
        "<!DOCTYPE html>"
        "<html lang=\"en\">"
        "<head>"
        "<meta charset=\"utf-8\" />"
        f"<title>{_escape(title)}</title>"
        f"<style>{_EXPORT_CSS}</style>"
        "</head>"
        "<body>"
        "<main class=\"report\">"
        f"{_render_header(document)}"
        "<section class=\"section\">"
        "<h2>Summary</h2>"
        f"{_render_summary(document)}"
        "</section>"
        "<section class=\"section\">"
        "<h2>Score history</h2>"
        f"{_render_trend(document.trend)}"
        "</section>"
        "<section class=\"section\">"
        "<h2>Scores by category</h2>"
        f"{_render_chart(document.chart)}"
        "</section>"
        f"{sections_html}"
        "<section class=\"section\">"
        "<h2>Action plan</h2>"
        f"{_render_action_plan(document.action_plan)}"
        "</section>"
        "</main>"
        "</body>"
        "</html>"
    )
