"""HTML display units for evidence images."""

from __future__ import annotations

import html
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from src.audit.reporting.schemas import ImageAttachment

NO_EVIDENCE = '<span class="no-evidence">—</span>'
MISSING_CORRECTIVE = '<span class="missing-corrective">⚠️ No corrective photo</span>'
NO_PICTURE = '<span class="no-evidence">-</span>'


def _image_tags(images: Iterable["ImageAttachment"], css_class: str, label: str) -> list[str]:
    tags: list[str] = []
    for index, image in enumerate(images, start=1):
        if not image.data_url:
            continue
        alt = html.escape(f"{label} {index}")
        tags.append(f'<img class="{css_class}" src="{image.data_url}" alt="{alt}" />')
    return tags


def render_gallery(
    images: Iterable["ImageAttachment"],
    *,
    corrective: bool = False,
    flagged: bool = False,
) -> str:
    """Render a question's gallery.

    An empty "before" gallery renders a plain dash. An empty "after" gallery
    on an item flagged for corrective action renders a warning marker.
    """

    label = "After" if corrective else "Before"
    tags = _image_tags(images, "gallery__image", label)
    if not tags:
        return MISSING_CORRECTIVE if corrective and flagged else NO_EVIDENCE
    return f'<div class="gallery">{"".join(tags)}</div>'


def picture_cell(images: Iterable["ImageAttachment"], label: str = "Fridge image") -> str:
    """Compact picture cell used by the temperature tables."""

    tags = _image_tags(images, "picture-cell__image", label)
    if not tags:
        return NO_PICTURE
    return f'<div class="picture-cell">{"".join(tags)}</div>'


__all__ = ["MISSING_CORRECTIVE", "NO_EVIDENCE", "NO_PICTURE", "picture_cell", "render_gallery"]
