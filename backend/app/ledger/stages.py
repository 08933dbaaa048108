"""Batch lifecycle stages.

Lifecycle:  created → processed → shipped → delivered   (or rejected)

Any stage may be set from any non-terminal stage; REJECTED ends the
batch's mutability.  Stages are stored as their integer value.
"""

from enum import IntEnum


class Stage(IntEnum):
    CREATED = 0
    PROCESSED = 1
    SHIPPED = 2
    DELIVERED = 3
    REJECTED = 4


_STAGE_VALUES = frozenset(s.value for s in Stage)


def is_valid_stage(value) -> bool:
    """True exactly for the five stage constants (bools are not stages)."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value in _STAGE_VALUES
