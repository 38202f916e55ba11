"""Model spec strings: ``<provider>/<model-id>`` or a bare model id."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ModelProvider(StrEnum):
    BEDROCK = "bedrock"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


DEFAULT_PROVIDER = ModelProvider.BEDROCK


@dataclass(frozen=True)
class ModelSpec:
    provider: ModelProvider
    model_id: str

    @property
    def litellm_model(self) -> str:
        return f"{self.provider}/{self.model_id}"

    def __str__(self) -> str:
        return self.litellm_model


def parse_model_spec(
    spec: str,
    default_provider: ModelProvider | str = DEFAULT_PROVIDER,
) -> ModelSpec:
    """Split a model spec into provider and model id.

    >>> parse_model_spec("openai/gpt-4o")
    ModelSpec(provider=<ModelProvider.OPENAI: 'openai'>, model_id='gpt-4o')

    A missing or unknown provider prefix falls back to ``default_provider``
    and keeps the whole string as the model id.
    """
    default = ModelProvider(default_provider)
    prefix, sep, rest = spec.partition("/")
    if not sep:
        return ModelSpec(default, spec)
    try:
        return ModelSpec(ModelProvider(prefix.lower()), rest)
    except ValueError:
        return ModelSpec(default, spec)


def resolve_model(
    spec: str | None,
    default_provider: ModelProvider | str = DEFAULT_PROVIDER,
) -> str | None:
    """Engine-ready model string, or None to let the engine pick its default."""
    if not spec:
        return None
    return parse_model_spec(spec, default_provider).litellm_model
