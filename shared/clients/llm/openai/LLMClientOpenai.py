import httpx
from pydantic import ValidationError

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.llm.models.ChatResponse import OpenAIChatResponse, ProviderErrorEnvelope
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientOpenai(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.openai.com/v1", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "OpenAI"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.openai.com/v1"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self, api_key: str | None = None) -> dict:
        if api_key:
            return {"Authorization": f"Bearer {api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_chat(self) -> str:
        return "/chat/completions"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, system_prompt: str, user_prompt: str, model: str) -> dict:
        """Build the OpenAI chat completion request body.

        Returns:
            dict: {"model": "...", "messages": [system, user], "temperature": ..., "max_tokens": ...}
        """
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_chat_response(self, response_data: dict, model: str | None = None) -> str:
        """Extract the assistant reply from a /chat/completions response.

        Raises:
            MalformedResponseError: If the body has no choices or the first choice has no text.
        """
        try:
            parsed = OpenAIChatResponse.model_validate(response_data)
        except ValidationError as e:
            self._raise_malformed(e, model=model)
        text = parsed.to_text()
        if text is None:
            self._raise_malformed(ValueError("no message content in first choice"), model=model)
        return text

    def extract_error_message(self, response: httpx.Response) -> str:
        try:
            return ProviderErrorEnvelope.model_validate(response.json()).error.message
        except (ValueError, ValidationError):
            return "HTTP %d %s" % (response.status_code, response.reason_phrase)
