"""DSPy language-model configuration."""

from __future__ import annotations

import logging
import threading

import dspy

from hashpress.config.models import LLMSettings

LOGGER = logging.getLogger(__name__)

_LOCK = threading.Lock()
_CONFIGURED: tuple | None = None


def configure_language_model(settings: LLMSettings) -> None:
    """Configure DSPy's global language model from the LLM settings.

    Repeated calls with identical settings are no-ops, so every collaborator
    may call this on construction.

    Args:
        settings: Provider, model and sampling configuration.

    Raises:
        RuntimeError: If the language model cannot be configured.
    """
    global _CONFIGURED

    key = (
        settings.provider,
        settings.model,
        settings.api_base_url,
        settings.api_key,
        settings.temperature,
        settings.max_tokens,
    )
    with _LOCK:
        if _CONFIGURED == key:
            return

        api_key = settings.api_key
        if settings.api_base_url and api_key is None:
            api_key = ""

        if settings.provider != "local" and settings.api_base_url is None and api_key is None:
            LOGGER.debug(
                "No llm.api_key configured; relying on provider environment variables for %s.",
                settings.provider,
            )

        model = settings.model
        if settings.provider and "/" not in model:
            model = f"{settings.provider}/{model}"

        lm_kwargs: dict[str, object] = {
            "model": model,
            "temperature": settings.temperature,
            "max_tokens": settings.max_tokens,
        }
        if settings.api_base_url:
            lm_kwargs["api_base"] = settings.api_base_url
        if api_key is not None:
            lm_kwargs["api_key"] = api_key

        try:
            language_model = dspy.LM(**lm_kwargs)
            dspy.settings.configure(lm=language_model, track_usage=True)
        except Exception as exc:  # pragma: no cover - DSPy configuration errors
            raise RuntimeError(
                "Unable to configure the DSPy language model. Verify the `llm` section "
                "of your configuration."
            ) from exc

        _CONFIGURED = key
        LOGGER.debug("Configured DSPy language model %s", model)


__all__ = ["configure_language_model"]
