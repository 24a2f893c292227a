"""Per-query answer provider selection.

The caller owns loading and saving these settings and passes one AIConfig
with every question. Nothing in the pipeline reads provider credentials from
the environment.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class LocalAIConfig(BaseModel):
    """Answer with the local extractive strategy, no network access."""

    provider: Literal["local"] = "local"


class RemoteAIConfig(BaseModel):
    """Common fields of the remote generative-text providers."""

    api_key: str = ""
    model: str
    fallback_model: str | None = None

    def get_models(self) -> list[str]:
        """Models to try in order: the primary model, then the fallback (if any)."""
        models = [self.model]
        if self.fallback_model and self.fallback_model != self.model:
            models.append(self.fallback_model)
        return models


class OpenAIConfig(RemoteAIConfig):
    provider: Literal["openai"] = "openai"
    model: str = "gpt-4o-mini"


class AnthropicConfig(RemoteAIConfig):
    provider: Literal["anthropic"] = "anthropic"
    model: str = "claude-3-5-haiku-latest"


AIConfig = Annotated[
    Union[LocalAIConfig, OpenAIConfig, AnthropicConfig],
    Field(discriminator="provider"),
]

_ai_config_adapter: TypeAdapter = TypeAdapter(AIConfig)


def parse_ai_config(raw: dict) -> LocalAIConfig | OpenAIConfig | AnthropicConfig:
    """Validate a raw mapping into the matching AIConfig variant.

    Raises:
        pydantic.ValidationError: If the provider tag is unknown or a field is invalid.
    """
    return _ai_config_adapter.validate_python(raw)
