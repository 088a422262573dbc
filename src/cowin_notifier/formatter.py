"""
Rendering of scan results into Telegram HTML messages.

Example::

    <b>Visakhapatnam</b>

    <code>GVMC Ward 12</code> | <b>530017</b> | 5 slots | 01-06-2021 | <b>COVAXIN</b>
"""

from __future__ import annotations

from typing import Iterable, Optional

from aiogram.utils.text_decorations import html_decoration

from .models import Slot


DEFAULT_MAX_BYTES = 512
SEPARATOR = " | "
ELLIPSIS = "…"


def _size(text: str) -> int:
    return len(text.encode("utf-8"))


def format_slot(slot: Slot) -> str:
    quote = html_decoration.quote
    parts = [
        html_decoration.code(quote(slot.center_name)),
        html_decoration.bold(quote(slot.pincode)),
        f"{quote(slot.available_capacity)} slots",
        quote(slot.date),
    ]
    if slot.vaccine_name:
        parts.append(html_decoration.bold(quote(slot.vaccine_name)))
    return SEPARATOR.join(parts)


def format_header(location_name: str, max_bytes: Optional[int] = None) -> str:
    """Bold district name, cut short with an ellipsis if it exceeds ``max_bytes``."""
    header = html_decoration.bold(html_decoration.quote(location_name))
    if max_bytes is None or _size(header) <= max_bytes:
        return header
    name = location_name
    while name:
        name = name[:-1]
        header = html_decoration.bold(html_decoration.quote(name.rstrip() + ELLIPSIS))
        if _size(header) <= max_bytes:
            return header
    raise ValueError(f"max_bytes={max_bytes} cannot fit a message header")


def format_slots(
    location_name: str, slots: Iterable[Slot], max_bytes: int = DEFAULT_MAX_BYTES
) -> Optional[str]:
    """
    Render ``slots`` under a header naming the district.

    The whole message stays within ``max_bytes`` (UTF-8). An overlong header is
    shortened to leave room for the first slot. Slots are added in order; the
    first one that would overflow the budget and everything after it are left
    out. Returns None when not a single slot fits, since a bare header tells
    the reader nothing.
    """
    lines = [format_slot(slot) for slot in slots]
    if not lines:
        return None
    try:
        message = format_header(location_name, max_bytes - _size(f"\n\n{lines[0]}"))
    except ValueError:
        return None
    for line in lines:
        candidate = f"{message}\n\n{line}"
        if _size(candidate) > max_bytes:
            break
        message = candidate
    return message


__all__ = ["format_slots", "format_slot", "format_header", "DEFAULT_MAX_BYTES"]
