"""Answer strategies tried by the AnswerSynthesizer.

Every strategy implements the same contract:

    await strategy.attempt(question, context_text) -> AttemptResult

An AttemptResult carries either the answer text or the SynthesisError that
stopped the attempt. Strategies never raise provider failures.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from services.document_qa.ContextAssembler import split_context
from services.document_qa.RelevanceScorer import compile_keyword_patterns, tokenize_question
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.models.errors import MalformedResponseError, ProviderTransportError, SynthesisError

SYSTEM_PROMPT = (
    "You are an assistant that answers questions about the user's PDF documents. "
    "Answer only from the document excerpts given below. "
    "If the excerpts do not contain the answer, say explicitly that the documents do not contain this information. "
    "When relevant, cite the document name and page number your answer is based on."
)

LOCAL_NOT_FOUND_ANSWER = (
    "I couldn't find specific information about that in the uploaded documents. "
    "Please try rephrasing your question or uploading additional documentation."
)
LOCAL_DISCLAIMER = (
    "Note: this answer was extracted locally by keyword matching and is only approximate. "
    "Configure an AI provider API key for complete, generated answers."
)

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def build_user_prompt(question: str, context_text: str) -> str:
    return f"Question: {question}\n\nDocument excerpts:\n\n{context_text}"


@dataclass(frozen=True)
class AttemptResult:
    answer: str | None = None
    error: SynthesisError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.answer is not None

    @classmethod
    def succeeded(cls, answer: str) -> "AttemptResult":
        return cls(answer=answer)

    @classmethod
    def failed(cls, error: SynthesisError) -> "AttemptResult":
        return cls(error=error)


class AnswerStrategyInterface(ABC):
    @abstractmethod
    def get_name(self) -> str:
        """Returns a short label for logging, e.g. "openai:gpt-4o-mini"."""
        pass

    @abstractmethod
    async def attempt(self, question: str, context_text: str) -> AttemptResult:
        pass


class RemoteAnswerStrategy(AnswerStrategyInterface):
    """Asks one model of one remote provider."""

    def __init__(self, client: LLMClientInterface, model: str, api_key: str, logger: logging.Logger) -> None:
        self._client = client
        self._model = model
        self._api_key = api_key
        self.logging = logger

    def get_name(self) -> str:
        return f"{self._client.get_engine_name()}:{self._model}"

    async def attempt(self, question: str, context_text: str) -> AttemptResult:
        """Send the question and excerpts to the provider.

        The whole call is bounded by the client's timeout; expiry counts as a
        transport failure.
        """
        try:
            answer = await asyncio.wait_for(
                self._client.do_chat(
                    system_prompt=SYSTEM_PROMPT,
                    user_prompt=build_user_prompt(question, context_text),
                    model=self._model,
                    api_key=self._api_key,
                ),
                timeout=self._client.timeout,
            )
        except asyncio.TimeoutError:
            return AttemptResult.failed(
                ProviderTransportError(
                    "No answer within %ss." % self._client.timeout,
                    provider=self._client.get_engine_name(),
                    model=self._model,
                )
            )
        except SynthesisError as e:
            return AttemptResult.failed(e)

        if not answer:
            return AttemptResult.failed(
                MalformedResponseError("Empty answer.", provider=self._client.get_engine_name(), model=self._model)
            )
        return AttemptResult.succeeded(answer)


class LocalAnswerStrategy(AnswerStrategyInterface):
    """Extractive fallback: quotes the context sentences that best match the question.

    Needs neither network access nor a credential and always succeeds.
    """

    MAX_CANDIDATE_PASSAGES = 3
    MAX_SENTENCES = 3

    def __init__(self, logger: logging.Logger) -> None:
        self.logging = logger

    def get_name(self) -> str:
        return "local"

    async def attempt(self, question: str, context_text: str) -> AttemptResult:
        return AttemptResult.succeeded(self.answer(question, context_text))

    def answer(self, question: str, context_text: str) -> str:
        prompt = build_user_prompt(question, context_text)
        self.logging.debug("Local answer for prompt of %d chars", len(prompt))

        keywords = tokenize_question(question)
        if not keywords:
            return LOCAL_NOT_FOUND_ANSWER
        patterns = compile_keyword_patterns(keywords)

        # (distinct hits, total hits, position, sentence, document, page)
        matches: list[tuple[int, int, int, str, str, int]] = []
        seen: set[str] = set()
        chunks = split_context(context_text)[: self.MAX_CANDIDATE_PASSAGES]
        for document_name, page_number, text in chunks:
            for sentence in _SENTENCE_SPLIT_RE.split(text):
                sentence = sentence.strip()
                if not sentence or sentence in seen:
                    continue
                hits = [len(pattern.findall(sentence)) for pattern in patterns.values()]
                distinct = sum(1 for count in hits if count)
                if not distinct:
                    continue
                seen.add(sentence)
                matches.append((distinct, sum(hits), len(matches), sentence, document_name, page_number))

        if not matches:
            return LOCAL_NOT_FOUND_ANSWER

        matches.sort(key=lambda match: (-match[0], -match[1], match[2]))
        quotes = [
            f'"{sentence}" ({document_name}, page {page_number})'
            for _, _, _, sentence, document_name, page_number in matches[: self.MAX_SENTENCES]
        ]
        return "Based on the documents, here's what I found:\n\n" + "\n\n".join(quotes) + "\n\n" + LOCAL_DISCLAIMER
