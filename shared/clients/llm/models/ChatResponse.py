"""Wire shapes of the remote chat providers.

Each provider response is validated once at the client boundary into one of
these models; ``to_text()`` is the single conversion to the answer string.
Unknown extra fields are ignored, missing required ones fail validation.
"""

from typing import Literal

from pydantic import BaseModel


class ProviderErrorDetail(BaseModel):
    message: str
    type: str | None = None


class ProviderErrorEnvelope(BaseModel):
    """Error body shared by both providers: {"error": {"message": ..., "type": ...}}."""

    error: ProviderErrorDetail


################ OPENAI ##################
class OpenAIMessage(BaseModel):
    role: str = "assistant"
    content: str | None = None


class OpenAIChoice(BaseModel):
    index: int = 0
    message: OpenAIMessage
    finish_reason: str | None = None


class OpenAIChatResponse(BaseModel):
    """Body of a successful POST /chat/completions."""

    id: str | None = None
    model: str | None = None
    choices: list[OpenAIChoice]

    def to_text(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].message.content


################ ANTHROPIC ##################
class AnthropicContentBlock(BaseModel):
    type: str
    text: str | None = None


class AnthropicMessageResponse(BaseModel):
    """Body of a successful POST /v1/messages."""

    id: str | None = None
    type: Literal["message"] = "message"
    model: str | None = None
    content: list[AnthropicContentBlock]
    stop_reason: str | None = None

    def to_text(self) -> str | None:
        texts = [block.text for block in self.content if block.type == "text" and block.text]
        if not texts:
            return None
        return "".join(texts)
