from __future__ import annotations

from typing import Iterable

from src.core.utils.exceptions import ConfigError


def _raw(self, key: str):
    return self._settings.get(key)


def int_prop(key: str, *, min_v: int | None = None, max_v: int | None = None) -> property:
    def _get(self) -> int:
        raw = _raw(self, key)
        try:
            if isinstance(raw, bool) or not isinstance(raw, (int, float)) or int(raw) != raw:
                raise ValueError(raw)
            v = int(raw)
        except (ValueError, OverflowError):
            raise ConfigError(f"{key} must be an integer, got {raw!r}") from None
        if min_v is not None and v < min_v:
            raise ConfigError(f"{key} must be >= {min_v}, got {v}")
        if max_v is not None and v > max_v:
            raise ConfigError(f"{key} must be <= {max_v}, got {v}")
        return v

    return property(_get)


def str_prop(key: str, *, optional: bool = False) -> property:
    def _get(self) -> str | None:
        raw = _raw(self, key)
        if raw is None and optional:
            return None
        if not isinstance(raw, str) or not raw.strip():
            raise ConfigError(f"{key} must be a non-empty string, got {raw!r}")
        return raw.strip()

    return property(_get)


def enum_prop(key: str, *, allowed: Iterable[str]) -> property:
    allowed_set = {str(x).strip().lower() for x in allowed}

    def _get(self) -> str:
        raw = _raw(self, key)
        v = str(raw or "").strip().lower()
        if v not in allowed_set:
            raise ConfigError(f"{key} must be one of {', '.join(sorted(allowed_set))}, got {raw!r}")
        return v

    return property(_get)


def color_prop(key: str) -> property:
    def _get(self) -> tuple[int, int, int]:
        raw = _raw(self, key)
        if not isinstance(raw, (list, tuple)) or len(raw) != 3:
            raise ConfigError(f"{key} must be an [r, g, b] list, got {raw!r}")
        out = []
        for c in raw:
            if isinstance(c, bool) or not isinstance(c, int) or not 0 <= c <= 255:
                raise ConfigError(f"{key} channels must be integers in 0..255, got {raw!r}")
            out.append(int(c))
        return (out[0], out[1], out[2])

    return property(_get)
