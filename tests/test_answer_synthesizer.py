"""Tests for the answer strategies, the provider clients and the failure policy."""

import asyncio

import httpx
import pytest

from conftest import RecordingHandler, anthropic_reply, boot_client, openai_reply, provider_error
from services.document_qa.AnswerStrategies import (
    LOCAL_DISCLAIMER,
    LOCAL_NOT_FOUND_ANSWER,
    SYSTEM_PROMPT,
    LocalAnswerStrategy,
)
from services.document_qa.AnswerSynthesizer import UNAVAILABLE_ANSWER, AnswerSynthesizer
from shared.clients.llm.anthropic.LLMClientAnthropic import LLMClientAnthropic
from shared.clients.llm.openai.LLMClientOpenai import LLMClientOpenai
from shared.models.ai_config import AnthropicConfig, LocalAIConfig, OpenAIConfig
from shared.models.errors import MalformedResponseError

CONTEXT = (
    '[Document 1: "report.pdf", Page 2]\n'
    "Revenue grew 20% in Q3. Costs were flat. The revenue target for Q4 is higher revenue."
    "\n\n"
    '[Document 2: "notes.pdf", Page 1]\n'
    "Unrelated remarks about the office."
)


def synthesize(synthesizer, question, context, config) -> str:
    return asyncio.run(synthesizer.synthesize(question, context, config))


class TestLocalStrategy:
    def test_quotes_matching_sentences_with_disclaimer(self, helper_config):
        answer = synthesize(AnswerSynthesizer(helper_config), "What about revenue?", CONTEXT, LocalAIConfig())

        assert '"The revenue target for Q4 is higher revenue." (report.pdf, page 2)' in answer
        assert '"Revenue grew 20% in Q3." (report.pdf, page 2)' in answer
        assert "Costs were flat" not in answer
        assert answer.endswith(LOCAL_DISCLAIMER)
        # more hits rank first
        assert answer.index("target for Q4") < answer.index("grew 20%")

    def test_sentence_with_more_distinct_keywords_ranks_first(self, helper_config):
        context = '[Document 1: "a.pdf", Page 1]\nRevenue, revenue, revenue. Revenue and costs.'
        strategy = LocalAnswerStrategy(helper_config.get_logger())

        answer = strategy.answer("revenue costs", context)

        assert answer.index("Revenue and costs.") < answer.index("Revenue, revenue, revenue.")

    def test_no_matching_sentence(self, helper_config):
        answer = synthesize(AnswerSynthesizer(helper_config), "pension liabilities", CONTEXT, LocalAIConfig())
        assert answer == LOCAL_NOT_FOUND_ANSWER

    def test_only_first_three_chunks_are_searched(self, helper_config):
        chunks = [f'[Document {i}: "d{i}.pdf", Page 1]\nfiller text {i}.' for i in range(1, 4)]
        chunks.append('[Document 4: "d4.pdf", Page 1]\nThe budget is large.')
        strategy = LocalAnswerStrategy(helper_config.get_logger())
        assert strategy.answer("budget", "\n\n".join(chunks)) == LOCAL_NOT_FOUND_ANSWER

    def test_is_deterministic(self, helper_config):
        synthesizer = AnswerSynthesizer(helper_config)
        first = synthesize(synthesizer, "revenue", CONTEXT, LocalAIConfig())
        second = synthesize(synthesizer, "revenue", CONTEXT, LocalAIConfig())
        assert first == second


class TestOpenAIStrategy:
    def test_success_sends_bounded_request(self, helper_config):
        handler = RecordingHandler(openai_reply("  Revenue grew 20% (report.pdf, page 2).  "))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})

        answer = synthesize(synthesizer, "What about revenue?", CONTEXT, OpenAIConfig(api_key="sk-test"))

        assert answer == "Revenue grew 20% (report.pdf, page 2)."
        request = handler.requests[0]
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = handler.json_body()
        assert body["model"] == "gpt-4o-mini"
        assert body["temperature"] == 0.2
        assert body["max_tokens"] == 800
        assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert "What about revenue?" in body["messages"][1]["content"]
        assert '[Document 1: "report.pdf", Page 2]' in body["messages"][1]["content"]

    def test_unauthorized(self, helper_config):
        handler = RecordingHandler(provider_error(401, "Incorrect API key provided"))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, OpenAIConfig(api_key="sk-bad"))

        assert "API key for OpenAI is invalid or missing" in answer

    def test_missing_key_makes_no_request(self, helper_config):
        handler = RecordingHandler(openai_reply("never"))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, OpenAIConfig(api_key=""))

        assert "invalid or missing" in answer
        assert handler.requests == []

    def test_provider_error_message_is_embedded(self, helper_config):
        handler = RecordingHandler(provider_error(429, "Rate limit reached for requests"))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, OpenAIConfig(api_key="sk-test"))

        assert answer == "The OpenAI service returned an error: Rate limit reached for requests"

    def test_error_without_json_body(self, helper_config):
        handler = RecordingHandler(httpx.Response(502, text="<html>bad gateway</html>"))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, OpenAIConfig(api_key="sk-test"))

        assert answer == "The OpenAI service returned an error: HTTP 502 Bad Gateway"

    def test_transport_failure(self, helper_config):
        handler = RecordingHandler(httpx.ConnectError("connection refused"))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, OpenAIConfig(api_key="sk-test"))

        assert answer == UNAVAILABLE_ANSWER

    def test_malformed_response(self, helper_config):
        handler = RecordingHandler(httpx.Response(200, json={"unexpected": []}))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, OpenAIConfig(api_key="sk-test"))

        assert answer == UNAVAILABLE_ANSWER

    def test_timeout_is_a_recoverable_failure(self, helper_config, monkeypatch):
        monkeypatch.setenv("LLM_TIMEOUT", "0.05")

        async def slow_handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return openai_reply("too late")

        client = boot_client(LLMClientOpenai(helper_config), slow_handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, OpenAIConfig(api_key="sk-test"))

        assert answer == UNAVAILABLE_ANSWER

    def test_fallback_model_after_failure(self, helper_config):
        handler = RecordingHandler(provider_error(404, "model not found"), openai_reply("fallback answer"))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})
        config = OpenAIConfig(api_key="sk-test", model="gpt-big", fallback_model="gpt-small")

        answer = synthesize(synthesizer, "revenue", CONTEXT, config)

        assert answer == "fallback answer"
        assert [handler.json_body(i)["model"] for i in range(2)] == ["gpt-big", "gpt-small"]

    def test_auth_failure_stops_fallback_chain(self, helper_config):
        handler = RecordingHandler(provider_error(401, "bad key"))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})
        config = OpenAIConfig(api_key="sk-bad", model="gpt-big", fallback_model="gpt-small")

        synthesize(synthesizer, "revenue", CONTEXT, config)

        assert len(handler.requests) == 1

    def test_last_failure_decides_the_answer(self, helper_config):
        handler = RecordingHandler(provider_error(500, "overloaded"), httpx.ConnectError("down"))
        client = boot_client(LLMClientOpenai(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})
        config = OpenAIConfig(api_key="sk-test", fallback_model="gpt-small")

        assert synthesize(synthesizer, "revenue", CONTEXT, config) == UNAVAILABLE_ANSWER


class TestAnthropicStrategy:
    def test_success(self, helper_config):
        handler = RecordingHandler(anthropic_reply("Revenue grew 20%."))
        client = boot_client(LLMClientAnthropic(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"anthropic": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, AnthropicConfig(api_key="ant-key"))

        assert answer == "Revenue grew 20%."
        request = handler.requests[0]
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "ant-key"
        assert request.headers["anthropic-version"] == "2023-06-01"
        body = handler.json_body()
        assert body["system"] == SYSTEM_PROMPT
        assert [m["role"] for m in body["messages"]] == ["user"]
        assert body["max_tokens"] == 800
        assert body["temperature"] == 0.2

    def test_unauthorized(self, helper_config):
        handler = RecordingHandler(provider_error(401, "invalid x-api-key"))
        client = boot_client(LLMClientAnthropic(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"anthropic": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, AnthropicConfig(api_key="bad"))

        assert "API key for Anthropic is invalid or missing" in answer

    def test_message_without_text_block_is_malformed(self, helper_config):
        handler = RecordingHandler(httpx.Response(200, json={"type": "message", "content": []}))
        client = boot_client(LLMClientAnthropic(helper_config), handler)
        synthesizer = AnswerSynthesizer(helper_config, {"anthropic": client})

        answer = synthesize(synthesizer, "revenue", CONTEXT, AnthropicConfig(api_key="key"))

        assert answer == UNAVAILABLE_ANSWER


class TestStrategySelection:
    def test_local_config(self, helper_config):
        strategies = AnswerSynthesizer(helper_config).build_strategies(LocalAIConfig())
        assert [s.get_name() for s in strategies] == ["local"]

    def test_remote_config_with_fallback(self, helper_config):
        client = LLMClientOpenai(helper_config)
        synthesizer = AnswerSynthesizer(helper_config, {"openai": client})
        config = OpenAIConfig(api_key="k", model="m1", fallback_model="m2")
        assert [s.get_name() for s in synthesizer.build_strategies(config)] == ["openai:m1", "openai:m2"]

    def test_provider_without_client_is_rejected(self, helper_config):
        with pytest.raises(ValueError, match="not enabled"):
            AnswerSynthesizer(helper_config).build_strategies(AnthropicConfig(api_key="k"))


class TestMalformedResponses:
    def test_openai_error_names_the_model(self, helper_config):
        handler = RecordingHandler(httpx.Response(200, json={"unexpected": []}))
        client = boot_client(LLMClientOpenai(helper_config), handler)

        with pytest.raises(MalformedResponseError) as exc_info:
            asyncio.run(client.do_chat("system", "user", model="gpt-test", api_key="sk-test"))

        assert exc_info.value.provider == "openai"
        assert exc_info.value.model == "gpt-test"

    def test_anthropic_error_names_the_model(self, helper_config):
        handler = RecordingHandler(httpx.Response(200, json={"type": "message", "content": []}))
        client = boot_client(LLMClientAnthropic(helper_config), handler)

        with pytest.raises(MalformedResponseError) as exc_info:
            asyncio.run(client.do_chat("system", "user", model="claude-test", api_key="key"))

        assert exc_info.value.provider == "anthropic"
        assert exc_info.value.model == "claude-test"
