"""Cache key generation.

A cache key is unique only within its region, so keys never carry a region
prefix. Single integer identifiers are used as-is; any other single
identifier is tagged with its kind, like a component below, but never
contains the separator. Composite primary keys are combined into one key by
:func:`make_key`:

* two unsigned 32-bit integers are bit-packed into one 64-bit integer,
  ``(high << 32) | low``;
* every other combination is encoded as a delimited string in which each
  component is tagged with its kind and escaped, so two different tuples can
  never produce the same string.

A composite string always contains the separator and a tagged single
identifier never does, so the two cannot collide.

Packed pairs and plain integers share the integer space: ``make_key(1, 2)``
equals ``make_key(4294967298)``. A region must therefore use one identifier
shape for its integer keys, either scalar ids or packed pairs. This is a
caller precondition and is not checked.
"""

from enum import Enum
from typing import Any


CacheKeyType = int | str

PAIR_BITS = 32
PAIR_MASK = (1 << PAIR_BITS) - 1

KEY_SEPARATOR = "|"
_ESCAPE = "\\"


def pack_pair(high: int, low: int) -> int:
    """Pack two sub-identifiers into one 64-bit key.

    Precondition: ``0 <= high < 2**32`` and ``0 <= low < 2**32``. This is a
    caller contract and is not checked here; a value wider than 32 bits
    overlaps the other half and breaks the collision guarantee. Use
    :func:`make_key` when the ranges are not known in advance.
    """
    return (high << PAIR_BITS) | low


def unpack_pair(key: int) -> tuple[int, int]:
    """Split a key produced by :func:`pack_pair` into ``(high, low)``."""
    return key >> PAIR_BITS, key & PAIR_MASK


def _is_int(part: Any) -> bool:
    return isinstance(part, int) and not isinstance(part, bool)


def _fits_pair_half(part: Any) -> bool:
    return _is_int(part) and 0 <= part <= PAIR_MASK


def _escape(text: str) -> str:
    return text.replace(_ESCAPE, _ESCAPE * 2).replace(KEY_SEPARATOR, _ESCAPE + "p")


def _format_part(part: Any) -> str:
    # Bool must be tested before int: bool is an int subclass
    if isinstance(part, bool):
        return "b1" if part else "b0"
    if isinstance(part, int):
        return f"i{int(part)}"
    if isinstance(part, float):
        return f"f{part.hex()}"
    if isinstance(part, Enum):
        return _format_part(part.value)
    if isinstance(part, str):
        return "s" + _escape(part)
    raise TypeError(f"Unsupported cache key component type: {type(part).__name__}")


def make_key(*parts: Any) -> CacheKeyType:
    """Derive one cache key from one to three sub-identifiers.

    Args:
        *parts: Sub-identifiers in declaration order

    Returns:
        The identifier itself for a single integer, a tagged ``str`` for any
        other single part, a packed ``int`` for two unsigned 32-bit integers,
        otherwise a delimited ``str``

    Raises:
        ValueError: If no parts, more than three parts or a ``None`` part is given
        TypeError: If a part is of an unsupported type
    """
    if not parts:
        raise ValueError("At least one key component is required")
    if len(parts) > 3:
        raise ValueError(f"At most three key components are supported, got {len(parts)}")
    if any(part is None for part in parts):
        raise ValueError("Cache key components cannot be None")

    if len(parts) == 1:
        part = parts[0]
        if isinstance(part, bool):
            return int(part)
        if isinstance(part, Enum):
            return make_key(part.value)
        if isinstance(part, int):
            return part
        # Escaping removes every separator from the tagged form
        return _format_part(part)

    if len(parts) == 2 and all(_fits_pair_half(part) for part in parts):
        return pack_pair(int(parts[0]), int(parts[1]))

    return KEY_SEPARATOR.join(_format_part(part) for part in parts)


def key_for(identifier: Any) -> CacheKeyType:
    """Turn a caller-supplied identifier into a cache key.

    Tuples are treated as composite keys; anything else is a single part.
    """
    if isinstance(identifier, tuple):
        return make_key(*identifier)
    return make_key(identifier)
