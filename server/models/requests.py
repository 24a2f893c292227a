from pydantic import BaseModel, Field

from shared.models.ai_config import AIConfig, LocalAIConfig


class QueryRequest(BaseModel):
    question: str = Field(min_length=1)
    ai_config: AIConfig = Field(default_factory=LocalAIConfig)
