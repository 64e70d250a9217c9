"""Photographic evidence: grouping, before/after split and embedding."""

from .classifier import (
    EvidenceClassifier,
    extract_question_id,
    filter_by_corrective,
    group_by_question,
    is_corrective_flag,
)
from .gallery import picture_cell, render_gallery

__all__ = [
    "EvidenceClassifier",
    "extract_question_id",
    "filter_by_corrective",
    "group_by_question",
    "is_corrective_flag",
    "picture_cell",
    "render_gallery",
]
