"""Token usage accounting for DSPy predictions."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from hashpress.registry.models import TokenUsage

LOGGER = logging.getLogger(__name__)


def usage_from_prediction(prediction: Any) -> TokenUsage:
    """Sum the token usage DSPy tracked for ``prediction``.

    DSPy reports usage per model name when ``track_usage`` is enabled; the
    counts of every model involved are added up. Predictions without usage
    information yield zero counts.

    Args:
        prediction: Object returned by a DSPy program.

    Returns:
        TokenUsage: Aggregated prompt, completion and total tokens.
    """
    getter = getattr(prediction, "get_lm_usage", None)
    if getter is None:
        return TokenUsage()
    raw = getter() or {}
    if not isinstance(raw, Mapping):
        LOGGER.debug("Ignoring unexpected usage payload of type %s", type(raw).__name__)
        return TokenUsage()

    prompt = completion = total = 0
    for stats in raw.values():
        if not isinstance(stats, Mapping):
            continue
        prompt += _as_int(stats.get("prompt_tokens"))
        completion += _as_int(stats.get("completion_tokens"))
        total += _as_int(stats.get("total_tokens"))
    if not total:
        total = prompt + completion
    return TokenUsage(prompt=prompt, completion=completion, total=total)


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


__all__ = ["usage_from_prediction"]
