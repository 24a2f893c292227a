import httpx
from pydantic import ValidationError

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.llm.models.ChatResponse import AnthropicMessageResponse, ProviderErrorEnvelope
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientAnthropic(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.anthropic.com", val_type="string")
        self._api_version = self.get_config_val("VERSION", default="2023-06-01", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Anthropic"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.anthropic.com"),
            EnvConfig(env_key="VERSION", val_type="string", default="2023-06-01"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self, api_key: str | None = None) -> dict:
        # the version header is required on every call, authenticated or not
        headers = {"anthropic-version": self._api_version}
        if api_key:
            headers["x-api-key"] = api_key
        return headers

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_chat(self) -> str:
        return "/v1/messages"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, system_prompt: str, user_prompt: str, model: str) -> dict:
        """Build the Anthropic messages request body.

        The system instruction is a top-level field, not a message.

        Returns:
            dict: {"model": "...", "system": "...", "messages": [user], "temperature": ..., "max_tokens": ...}
        """
        return {
            "model": model,
            "system": system_prompt,
            "messages": [
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_chat_response(self, response_data: dict, model: str | None = None) -> str:
        """Extract the reply from a /v1/messages response by joining its text blocks.

        Raises:
            MalformedResponseError: If the body is not a message or carries no text block.
        """
        try:
            parsed = AnthropicMessageResponse.model_validate(response_data)
        except ValidationError as e:
            self._raise_malformed(e, model=model)
        text = parsed.to_text()
        if text is None:
            self._raise_malformed(ValueError("no text block in message content"), model=model)
        return text

    def extract_error_message(self, response: httpx.Response) -> str:
        try:
            return ProviderErrorEnvelope.model_validate(response.json()).error.message
        except (ValueError, ValidationError):
            return "HTTP %d %s" % (response.status_code, response.reason_phrase)
