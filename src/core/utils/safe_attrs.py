"""Safe attribute access helpers.

OpenRGB controller objects differ slightly between `openrgb-python` releases
(vendor/location live on `device.metadata` in some, on the device itself in
others). These helpers read such attributes without sprinkling
``getattr(..., None) or ...`` chains through the client code.

    from src.core.utils.safe_attrs import safe_str_attr
    vendor = safe_str_attr(device, "metadata.vendor", default="")
"""

from __future__ import annotations

from typing import Any, Optional


def _resolve(obj: Any, path: str) -> Any:
    cur = obj
    for part in path.split("."):
        if cur is None:
            return None
        try:
            cur = getattr(cur, part, None)
        except Exception:
            return None
    return cur


def safe_int_attr(
    obj: Any, name: str, *, default: int = 0, min_v: Optional[int] = None, max_v: Optional[int] = None
) -> int:
    """Safely get an integer attribute (dotted paths allowed) with explicit default.

    Handles a missing attribute or None (returns default), numeric strings, and
    out-of-range values (clamped when min_v/max_v are given).
    """
    raw = _resolve(obj, name)

    if raw is None:
        val = default
    else:
        try:
            val = int(raw)
        except (TypeError, ValueError):
            try:
                val = int(float(raw))
            except Exception:
                val = default

    if min_v is not None and val < min_v:
        val = min_v
    if max_v is not None and val > max_v:
        val = max_v

    return val


def safe_str_attr(obj: Any, name: str, *, default: str = "") -> str:
    """Safely get a string attribute (dotted paths allowed) with explicit default."""
    raw = _resolve(obj, name)

    if raw is None:
        return default

    return str(raw)


def first_str_attr(obj: Any, *names: str, default: str = "") -> str:
    """Return the first non-empty string found among *names*."""
    for name in names:
        value = safe_str_attr(obj, name).strip()
        if value:
            return value
    return default
