"""Decide which section types gate progression."""

BLOCKING_TYPES = frozenset({"exercise", "exercise-code", "quiz"})


def is_blocking(section_type: str) -> bool:
    """True for sections that must be solved before later content unlocks."""
    return section_type in BLOCKING_TYPES
