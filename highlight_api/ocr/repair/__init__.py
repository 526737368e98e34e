from .normalize import (
    join_lines,
    join_split_words,
    collapse_whitespace,
    fix_punctuation_spacing,
    repair_passage,
    ends_with_hyphen,
)

__all__ = [
    "join_lines",
    "join_split_words",
    "collapse_whitespace",
    "fix_punctuation_spacing",
    "repair_passage",
    "ends_with_hyphen",
]
