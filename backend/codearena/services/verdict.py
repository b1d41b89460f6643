"""Output comparison and overall verdict aggregation"""

import logging
from typing import Iterable, Optional

from codearena.core.constants import Verdict

logger = logging.getLogger(__name__)

# Harshest failure class first.
VERDICT_PRECEDENCE = (
    Verdict.COMPILATION_ERROR,
    Verdict.RUNTIME_ERROR,
    Verdict.TIME_LIMIT_EXCEEDED,
    Verdict.MEMORY_LIMIT_EXCEEDED,
    Verdict.WRONG_ANSWER,
    Verdict.ACCEPTED,
)


def outputs_match(actual: Optional[str], expected: Optional[str]) -> bool:
    """Exact comparison after trimming surrounding whitespace."""
    return (actual or "").strip() == (expected or "").strip()


def aggregate_verdict(results: Iterable) -> Verdict:
    """
    Reduce per-test-case results to one submission verdict

    Args:
        results: Objects with a ``verdict`` attribute

    Returns:
        Verdict: First entry of VERDICT_PRECEDENCE present in ``results``,
        or Runtime Error when none is
    """
    present = {Verdict(result.verdict) for result in results}
    for verdict in VERDICT_PRECEDENCE:
        if verdict in present:
            return verdict

    logger.error(
        "No aggregatable verdict among %s; falling back to %s",
        sorted(v.value for v in present) or "no results",
        Verdict.RUNTIME_ERROR.value,
    )
    return Verdict.RUNTIME_ERROR
