"""Prioritized list of the corrective actions raised by an audit."""

from __future__ import annotations

from typing import Iterable

from src.audit.reporting.schemas import ActionPlan, ActionPlanItem, ResponseItem, Section
from src.audit.scoring.engine import Severity, priority_rank, severity_from_score


def item_priority(item: ResponseItem) -> Severity:
    """Auditor-set severity, otherwise inferred from the achieved ratio."""

    if item.severity is not None:
        return item.severity
    return severity_from_score(item.value, item.coefficient)


def build_action_plan(sections: Iterable[Section]) -> ActionPlan:
    entries: list[ActionPlanItem] = []
    for section in sections:
        for item in section.corrective_items:
            entries.append(
                ActionPlanItem(
                    section=section.title,
                    reference_value=item.reference_value,
                    criteria_text=item.criteria_text,
                    finding=item.finding,
                    corrective_action_text=item.corrective_action_text,
                    priority=item_priority(item),
                    repeat_count=item.repeat_count,
                )
            )

    # stable: section order is kept within a priority
    entries = sorted(entries, key=lambda entry: priority_rank(entry.priority))
    return ActionPlan(
        items=entries,
        high=sum(1 for entry in entries if entry.priority is Severity.HIGH),
        medium=sum(1 for entry in entries if entry.priority is Severity.MEDIUM),
        low=sum(1 for entry in entries if entry.priority is Severity.LOW),
        repetitive=sum(1 for entry in entries if entry.repeat_count > 0),
    )


__all__ = ["build_action_plan", "item_priority"]
