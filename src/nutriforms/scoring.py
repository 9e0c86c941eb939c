"""Scoring engine for tests.

A test is a schema whose ``scoring`` block is enabled.  Only single-select
(``radio``) fields count: the selected option's ``score`` is added to the
total, and the total is mapped to the first matching ``ScoreResult``.

All functions here are pure and never raise on bad answers; anything that
cannot be matched contributes 0.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from nutriforms.models.schema import FormSchema, ScoreResult, ScoringConfig

logger = logging.getLogger(__name__)


def calculate_score(schema: FormSchema, answers: Mapping[str, Any]) -> int:
    """Sum the scores of the selected options of every radio field.

    Checkbox fields never contribute, even when their options carry a
    score in storage.
    """
    total = 0
    for field in schema.all_fields():
        if field.type != "radio" or not field.options:
            continue
        selected = answers.get(field.key)
        if not isinstance(selected, str):
            continue
        opt = field.option_for(selected)
        if opt is not None and opt.score is not None:
            total += opt.score
    return total


def get_score_result(scoring: ScoringConfig, score: int) -> ScoreResult | None:
    """Return the first result (in authoring order) whose range holds *score*.

    Overlapping ranges resolve to the earliest listed one.  Returns None
    when the score falls in a gap.
    """
    for result in scoring.results:
        if result.min_score <= score <= result.max_score:
            return result
    return None


def has_scoring_enabled(schema: FormSchema) -> bool:
    """True iff scoring is present, enabled, and has at least one result."""
    return schema.is_test


def check_score_ranges(results: list[ScoreResult]) -> list[str]:
    """Describe overlaps and gaps between result ranges.

    The lookup keeps first-match semantics regardless; these messages are
    surfaced to the author as warnings only.  Inverted ranges
    (``min_score > max_score``) are reported too.
    """
    warnings: list[str] = []
    for r in results:
        if r.min_score > r.max_score:
            warnings.append(
                f"Range '{r.result_title}' has min_score {r.min_score} "
                f"greater than max_score {r.max_score}"
            )

    ordered = sorted(
        (r for r in results if r.min_score <= r.max_score),
        key=lambda r: (r.min_score, r.max_score),
    )
    # prev holds the range reaching furthest so far
    prev = ordered[0] if ordered else None
    for cur in ordered[1:]:
        if cur.min_score <= prev.max_score:
            warnings.append(
                f"Ranges '{prev.result_title}' [{prev.min_score}-{prev.max_score}] and "
                f"'{cur.result_title}' [{cur.min_score}-{cur.max_score}] overlap; "
                "the one listed first wins"
            )
        elif cur.min_score > prev.max_score + 1:
            warnings.append(
                f"Scores {prev.max_score + 1}-{cur.min_score - 1} match no result range"
            )
        if cur.max_score > prev.max_score:
            prev = cur

    if warnings:
        logger.debug("Score range diagnostics: %s", warnings)
    return warnings
