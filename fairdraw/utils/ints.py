"""
fairdraw.utils.ints
===================

Fixed-width integer helpers.

Counters, weights and timestamps in the data model are unsigned integers of
a declared width (u32/u64/u128). Arithmetic that combines them clamps at the
bounds instead of wrapping or overflowing, so adversarial inputs cannot drive
a counter past its range.
"""

from __future__ import annotations

from ..constants import U32_MAX, U64_MAX, U128_MAX

__all__ = [
    "require_uint",
    "sat_add",
    "sat_sub",
    "u32_le",
    "u64_le",
]

_WIDTHS = {32: U32_MAX, 64: U64_MAX, 128: U128_MAX}


def _max_for(bits: int) -> int:
    try:
        return _WIDTHS[bits]
    except KeyError:
        raise ValueError(f"unsupported integer width: {bits}") from None


def require_uint(name: str, v: int, bits: int) -> int:
    """Validate that *v* is an int in ``[0, 2**bits - 1]`` and return it."""
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError(f"{name} must be an int (got {type(v).__name__})")
    if v < 0 or v > _max_for(bits):
        raise ValueError(f"{name} must fit in u{bits} (got {v})")
    return v


def sat_add(a: int, b: int, bits: int = 32) -> int:
    """``a + b`` clamped to the width's maximum."""
    return min(a + b, _max_for(bits))


def sat_sub(a: int, b: int) -> int:
    """``a - b`` clamped at zero."""
    return a - b if a > b else 0


def u32_le(v: int) -> bytes:
    return require_uint("value", v, 32).to_bytes(4, "little")


def u64_le(v: int) -> bytes:
    return require_uint("value", v, 64).to_bytes(8, "little")
