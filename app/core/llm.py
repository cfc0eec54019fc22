"""Generative-model client shared by all flows.

One ``ModelClient`` is built per process and handed to the flow runner. The
pydantic-ai model is created lazily on first use so that a missing credential
surfaces as a ``ConfigurationError`` on the call that needs it rather than at
import or startup. Imports for the LLM providers are kept lazy for the same
reason.
"""

from __future__ import annotations

from typing import Optional, Sequence, TypeVar, Union

import httpx
from pydantic_ai import Agent
from pydantic_ai.exceptions import (
    AgentRunError,
    ModelHTTPError,
    UnexpectedModelBehavior,
)
from pydantic_ai.messages import UserContent
from pydantic_ai.models import Model

from app.core.config import Settings
from app.core.errors import (
    ConfigurationError,
    OutputConformanceError,
    ProviderUnavailableError,
)
from app.core.logging import get_logger

logger = get_logger(__name__)

OutputT = TypeVar("OutputT")

UserPrompt = Union[str, Sequence[UserContent]]

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def _build_google_model(settings: Settings) -> Model:
    """Build the Google Gemini model provider (lazy import)."""
    from pydantic_ai.models.google import GoogleModel
    from pydantic_ai.providers.google import GoogleProvider

    if not settings.gemini_api_key:
        raise ConfigurationError(
            "Gemini API key not configured. Set GEMINI_API_KEY in your environment.",
            setting="GEMINI_API_KEY",
        )
    provider = GoogleProvider(api_key=settings.gemini_api_key)
    return GoogleModel(settings.gemini_model, provider=provider)


def _build_openrouter_model(settings: Settings) -> Model:
    """Build OpenRouter model via OpenAI-compatible provider (lazy import)."""
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    if not settings.openrouter_api_key:
        raise ConfigurationError(
            "OpenRouter API key not configured. Set OPENROUTER_API_KEY in your environment.",
            setting="OPENROUTER_API_KEY",
        )

    provider = OpenAIProvider(
        api_key=settings.openrouter_api_key,
        base_url=OPENROUTER_BASE_URL,
    )
    return OpenAIChatModel(settings.openrouter_model, provider=provider)


def build_model_by_settings(settings: Settings) -> Model:
    provider = (settings.model_provider or "google").lower()
    if provider == "openrouter":
        return _build_openrouter_model(settings)
    return _build_google_model(settings)


def _credential_setting(settings: Optional[Settings]) -> str:
    if settings and (settings.model_provider or "").lower() == "openrouter":
        return "OPENROUTER_API_KEY"
    return "GEMINI_API_KEY"


class ModelClient:
    """Sends one rendered prompt to the configured model and returns its output.

    Exactly one attempt is made per call: the agent is built with
    ``retries=0`` so a reply that fails the declared output type is reported
    instead of re-requested.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        model: Optional[Model] = None,
    ) -> None:
        if settings is None and model is None:
            raise ValueError("ModelClient needs either settings or a model")
        self._settings = settings
        self._model = model

    @property
    def model(self) -> Model:
        if self._model is None:
            if self._settings is None:
                raise RuntimeError("ModelClient has neither a model nor settings")
            self._model = build_model_by_settings(self._settings)
        return self._model

    async def generate(
        self,
        user_prompt: UserPrompt,
        *,
        output_type: type[OutputT],
        system_prompt: Optional[str] = None,
        name: Optional[str] = None,
    ) -> OutputT:
        model = self.model
        agent: Agent[None, OutputT] = Agent[None, OutputT](
            model,
            output_type=output_type,
            system_prompt=system_prompt or (),
            name=name,
            retries=0,
        )
        try:
            res = await agent.run(user_prompt)
        except ModelHTTPError as e:
            raise self._classify_http_error(e) from e
        except UnexpectedModelBehavior as e:
            raise OutputConformanceError(
                f"Model reply did not match {output_type.__name__}: {e.message}"
            ) from e
        except (httpx.HTTPError, ConnectionError, TimeoutError) as e:
            logger.warning("Model transport failure: %s", e, extra={"flow": name or "-"})
            raise ProviderUnavailableError(
                f"Model provider could not be reached: {e}",
                provider=model.system,
            ) from e
        except AgentRunError as e:
            raise ProviderUnavailableError(
                f"Model run failed: {e}", provider=model.system
            ) from e
        return res.output

    def _classify_http_error(self, e: ModelHTTPError) -> Exception:
        body = str(e.body or "").lower()
        if e.status_code in (401, 403) or (e.status_code == 400 and "api key" in body):
            return ConfigurationError(
                f"Model provider rejected the configured credential (HTTP {e.status_code}).",
                setting=_credential_setting(self._settings),
            )
        return ProviderUnavailableError(
            f"Model provider returned HTTP {e.status_code} for {e.model_name}.",
            provider=self.model.system,
            status_code=e.status_code,
        )
