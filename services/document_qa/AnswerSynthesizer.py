"""Answer synthesis: picks the strategies for an AIConfig and turns failures into answers.

The fallback policy is an ordered strategy list:

    local      → [LocalAnswerStrategy]
    openai     → [RemoteAnswerStrategy(model), RemoteAnswerStrategy(fallback_model)?]
    anthropic  → [RemoteAnswerStrategy(model), RemoteAnswerStrategy(fallback_model)?]

Strategies are tried in order until one succeeds. A rejected credential ends
the chain early since every remaining strategy would use the same key.
"""

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.ai_config import LocalAIConfig, RemoteAIConfig
from shared.models.errors import ProviderAuthError, ProviderRequestError, SynthesisError
from services.document_qa.AnswerStrategies import (
    AnswerStrategyInterface,
    LocalAnswerStrategy,
    RemoteAnswerStrategy,
)

AUTH_FAILURE_ANSWER = (
    "The API key for {provider} is invalid or missing. "
    "Please check your API key settings and try again."
)
REQUEST_FAILURE_ANSWER = "The {provider} service returned an error: {message}"
UNAVAILABLE_ANSWER = (
    "Sorry, an answer could not be generated right now. Please try again later."
)

_PROVIDER_LABELS = {"openai": "OpenAI", "anthropic": "Anthropic"}


class AnswerSynthesizer:
    def __init__(self, helper_config: HelperConfig, llm_clients: dict[str, LLMClientInterface] | None = None) -> None:
        self.logging = helper_config.get_logger()
        self._llm_clients = llm_clients or {}

    ##########################################
    ################ CORE ####################
    ##########################################

    async def synthesize(self, question: str, context_text: str, config: LocalAIConfig | RemoteAIConfig) -> str:
        """Produce the answer text for a question and its assembled context.

        Args:
            question (str): The user's question.
            context_text (str): Context built by the ContextAssembler.
            config (LocalAIConfig | RemoteAIConfig): The caller's provider choice.

        Returns:
            str: The answer, or a user-facing description of why none could be generated.

        Raises:
            ValueError: If the config names a provider that has no configured client.
        """
        last_error: SynthesisError | None = None
        for strategy in self.build_strategies(config):
            result = await strategy.attempt(question, context_text)
            if result.ok:
                self.logging.debug("Answer produced by strategy %s", strategy.get_name())
                return result.answer
            last_error = result.error
            self.logging.warning("Answer strategy %s failed: %s", strategy.get_name(), last_error)
            if isinstance(last_error, ProviderAuthError):
                break
        return self.describe_failure(last_error)

    def build_strategies(self, config: LocalAIConfig | RemoteAIConfig) -> list[AnswerStrategyInterface]:
        """Return the ordered list of strategies for a config.

        Raises:
            ValueError: If a remote provider has no configured client.
            TypeError: If the config is not an AIConfig variant.
        """
        if isinstance(config, LocalAIConfig):
            return [LocalAnswerStrategy(self.logging)]
        if isinstance(config, RemoteAIConfig):
            client = self._llm_clients.get(config.provider)
            if client is None:
                raise ValueError("AI provider '%s' is not enabled on this server (LLM_ENGINES)." % config.provider)
            return [
                RemoteAnswerStrategy(client=client, model=model, api_key=config.api_key, logger=self.logging)
                for model in config.get_models()
            ]
        raise TypeError("Unsupported AI config: %r" % (config,))

    ##########################################
    ############### HELPERS ##################
    ##########################################

    @staticmethod
    def describe_failure(error: SynthesisError | None) -> str:
        """Convert the final strategy failure into the answer shown to the user."""
        provider = _PROVIDER_LABELS.get(error.provider, error.provider or "AI") if error else "AI"
        if isinstance(error, ProviderAuthError):
            return AUTH_FAILURE_ANSWER.format(provider=provider)
        if isinstance(error, ProviderRequestError):
            return REQUEST_FAILURE_ANSWER.format(provider=provider, message=error.message)
        return UNAVAILABLE_ANSWER
