from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from ocr.repair import repair_passage

logger = logging.getLogger("highlightcapture")


DEFAULT_SELFTEST_CASES: List[Tuple[Sequence[str], str]] = [
    (["consis-", "tent"], "consistent"),
    (["the cat", "sat"], "the cat sat"),
    (["It was the best of times ,", "it was the worst of times ."], "It was the best of times, it was the worst of times."),
    (["A well-", "known   fact", "\tindeed !"], "A wellknown fact indeed!"),
    (["Chapter 3 -", "The Return"], "Chapter 3 - The Return"),
    (["   ", ""], ""),
]


def run_pipeline_selftest(cases: Sequence[Tuple[Sequence[str], str]] | None = None) -> None:
    """Check the passage repair rules at startup; raises AssertionError on a regression."""
    test_cases = cases or DEFAULT_SELFTEST_CASES
    for lines, expected in test_cases:
        got = repair_passage(list(lines))
        if got != expected:
            raise AssertionError(f"passage repair regression: {list(lines)!r} -> {got!r}, expected {expected!r}")

    logger.info("Passage repair self-test passed (%d cases).", len(test_cases))
