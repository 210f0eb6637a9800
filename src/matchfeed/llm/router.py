from __future__ import annotations

import logging

from matchfeed.config import Settings, get_settings
from matchfeed.llm.prompts import TOOL_ROUTER_INSTRUCTIONS
from matchfeed.llm.providers import LLMProvider, ProviderPool

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """The provider for a task is disabled or its call failed."""

    def __init__(self, message: str, *, provider: str = "", status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class LLMRouter:
    """Maps each task to one provider and makes exactly one call per request."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.pool = ProviderPool(self.settings)

    def score_matches(self, prompt: str) -> str:
        provider = self._provider_for("score")
        model = self._model_for(provider, self.settings.openai_model_scorer)
        return self._call_text(provider, model=model, prompt=prompt)

    def classify(self, message: str) -> str:
        provider = self._provider_for("classify")
        model = self._model_for(provider, self.settings.openai_model_classifier)
        return self._call_text(provider, model=model, prompt=message, system=TOOL_ROUTER_INSTRUCTIONS)

    def _provider_for(self, task: str) -> LLMProvider:
        provider_name = {
            "score": self.settings.llm_router_score_provider,
            "classify": self.settings.llm_router_classify_provider,
        }.get(task, "openai")

        if provider_name == "local":
            return self.pool.local()
        return self.pool.openai()

    def _model_for(self, provider: LLMProvider, openai_model: str) -> str:
        if provider.config.name == "local":
            return self.settings.local_llm_model
        return openai_model

    def _call_text(self, provider: LLMProvider, *, model: str, prompt: str, system: str = "") -> str:
        if not provider.config.enabled:
            raise LLMUnavailableError(f"provider {provider.config.name} is not configured", provider=provider.config.name)

        try:
            return provider.complete_text(model=model, prompt=prompt, system=system).content
        except Exception as exc:
            logger.warning("LLM call failed provider=%s error=%s", provider.config.name, exc)
            raise LLMUnavailableError(
                str(exc) or exc.__class__.__name__,
                provider=provider.config.name,
                status_code=getattr(exc, "status_code", None),
            ) from exc
