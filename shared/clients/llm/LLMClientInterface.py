from abc import abstractmethod
from typing import NoReturn

import httpx
from pydantic import ValidationError
from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import (
    MalformedResponseError,
    ProviderAuthError,
    ProviderRequestError,
    ProviderTransportError,
)


class LLMClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # completion config, shared by every engine
        self.temperature = float(helper_config.get_number_val(f"{self.get_client_type().upper()}_TEMPERATURE", default=0.2))
        self.max_tokens = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_MAX_TOKENS", default=800))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Returns the endpoint path for chat/completion requests (e.g. "/chat/completions")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_chat_payload(self, system_prompt: str, user_prompt: str, model: str) -> dict:
        """Build the backend-specific request body for a chat/completion request.

        Args:
            system_prompt (str): The instruction that frames the answer.
            user_prompt (str): The question together with the document excerpts.
            model (str): The model identifier to use.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_chat_response(self, response_data: dict, model: str | None = None) -> str:
        """Validate a successful chat response and return the reply text.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            str: The assistant reply text.

        Raises:
            MalformedResponseError: If the body does not match the provider's response shape.
        """
        pass

    @abstractmethod
    def extract_error_message(self, response: httpx.Response) -> str:
        """Return the provider's own error message from a non-success response.

        Args:
            response (httpx.Response): The failed response.

        Returns:
            str: The error message, or a status description if the body carries none.
        """
        pass

    def _raise_malformed(self, error: ValidationError | ValueError, model: str | None = None) -> NoReturn:
        self.logging.error("Malformed %s response: %s", self.get_engine_name(), error)
        raise MalformedResponseError(
            "Unexpected response format from %s." % self._get_engine_name(),
            provider=self.get_engine_name(),
            model=model,
        )

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_chat(self, system_prompt: str, user_prompt: str, model: str, api_key: str) -> str:
        """Send a chat/completion request and return the trimmed reply text.

        Args:
            system_prompt (str): The system instruction.
            user_prompt (str): The user message.
            model (str): The model identifier.
            api_key (str): The credential supplied with the query.

        Returns:
            str: The trimmed assistant reply text.

        Raises:
            ProviderAuthError: If no credential is given or the provider rejects it (401).
            ProviderRequestError: If the provider answers with any other non-success status.
            ProviderTransportError: If the request fails or times out.
            MalformedResponseError: If the success body cannot be parsed.
        """
        engine = self.get_engine_name()
        if not api_key or not api_key.strip():
            raise ProviderAuthError("No API key provided for %s." % engine, provider=engine, model=model)

        body = self.get_chat_payload(system_prompt=system_prompt, user_prompt=user_prompt, model=model)
        self.logging.debug("Sending chat request to %s (model=%s, prompt_chars=%d)", engine, model, len(user_prompt))
        try:
            response = await self.do_request(
                method="POST",
                endpoint=self._get_endpoint_chat(),
                json=body,
                api_key=api_key.strip(),
            )
        except httpx.HTTPError as e:
            self.logging.error("Chat request to %s failed: %s", engine, e.__class__.__name__)
            raise ProviderTransportError(
                "Request to %s failed: %s" % (engine, e.__class__.__name__),
                provider=engine,
                model=model,
            ) from e

        if response.status_code == 401:
            raise ProviderAuthError("%s rejected the API key." % engine, provider=engine, model=model)
        if not response.is_success:
            raise ProviderRequestError(
                self.extract_error_message(response),
                provider=engine,
                model=model,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            self._raise_malformed(e, model=model)
        if not isinstance(data, dict):
            self._raise_malformed(ValueError("response body is not a JSON object"), model=model)
        return self.extract_chat_response(data, model=model).strip()
