"""Question answering service: the pipeline over one question.

Validating → Scoring → Synthesizing → Done

Every outcome, including "documents not ready" and "nothing relevant found",
is returned as a QuestionAnswer. Only a malformed AIConfig raises.
"""

from services.document_qa.AnswerSynthesizer import AnswerSynthesizer
from services.document_qa.ContextAssembler import (
    DEFAULT_MAX_PASSAGES,
    DEFAULT_PASSAGE_CHAR_LIMIT,
    ContextAssembler,
)
from services.document_qa.RelevanceScorer import RelevanceScorer
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.ai_config import LocalAIConfig, RemoteAIConfig, parse_ai_config
from shared.models.answer import QuestionAnswer
from shared.models.document import Document

NO_DOCUMENTS_ANSWER = "Please upload PDF documents first, then ask your question again."
DOCUMENTS_PROCESSING_ANSWER = (
    "These documents are still being processed: {names}. "
    "Please wait until processing has finished and ask again."
)
DOCUMENTS_FAILED_ANSWER = (
    "These documents could not be processed: {names}. "
    "Please remove or re-upload them and ask again."
)
NO_RELEVANT_CONTENT_ANSWER = (
    "I couldn't find anything relevant to your question in the uploaded documents. "
    "Try rephrasing it or using different keywords."
)


def _format_names(documents: list[Document]) -> str:
    return ", ".join(f'"{document.name}"' for document in documents)


class QAService:
    """Orchestrates validation, scoring, context assembly and answer synthesis."""

    def __init__(
        self,
        helper_config: HelperConfig,
        llm_clients: dict[str, LLMClientInterface] | None = None,
        scorer: RelevanceScorer | None = None,
        assembler: ContextAssembler | None = None,
        synthesizer: AnswerSynthesizer | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._scorer = scorer or RelevanceScorer(helper_config)
        self._assembler = assembler or ContextAssembler(
            max_passages=int(helper_config.get_number_val("QA_MAX_PASSAGES", default=DEFAULT_MAX_PASSAGES)),
            passage_char_limit=int(helper_config.get_number_val("QA_PASSAGE_CHAR_LIMIT", default=DEFAULT_PASSAGE_CHAR_LIMIT)),
        )
        self._synthesizer = synthesizer or AnswerSynthesizer(helper_config, llm_clients)

    ##########################################
    ################ CORE ####################
    ##########################################

    async def answer_question(
        self,
        question: str,
        documents: list[Document],
        ai_config: LocalAIConfig | RemoteAIConfig | dict,
    ) -> QuestionAnswer:
        """Answer a question from a snapshot of the caller's documents.

        Args:
            question (str): The free-text question.
            documents (list[Document]): The caller's documents; not modified.
            ai_config (LocalAIConfig | RemoteAIConfig | dict): Provider choice for this query.

        Returns:
            QuestionAnswer: The answer with at most three source citations.

        Raises:
            pydantic.ValidationError: If ai_config is a dict that is not a valid AIConfig.
            TypeError: If ai_config is neither an AIConfig nor a dict.
            ValueError: If ai_config names a provider with no configured client.
        """
        config = self._resolve_config(ai_config)
        snapshot = list(documents)
        self.logging.info(
            "Answering question=%r over %d document(s) with provider=%s",
            question[:80], len(snapshot), config.provider,
        )

        # Validating
        blocked = self._check_documents(snapshot)
        if blocked is not None:
            return QuestionAnswer(question=question, answer=blocked, sources=[])

        # Scoring
        passages = self._scorer.score(question, snapshot)
        if not passages:
            self.logging.info("No relevant passages found.")
            return QuestionAnswer(question=question, answer=NO_RELEVANT_CONTENT_ANSWER, sources=[])

        # Synthesizing
        context = self._assembler.assemble(passages)
        answer = await self._synthesizer.synthesize(question, context.text, config)

        self.logging.info(
            "Answered with %d passage(s), %d citation(s).",
            min(len(passages), self._assembler.max_passages), len(context.citations),
        )
        return QuestionAnswer(question=question, answer=answer, sources=context.citations)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _check_documents(self, documents: list[Document]) -> str | None:
        """Return the short-circuit answer if the documents cannot be searched yet."""
        if not documents:
            return NO_DOCUMENTS_ANSWER

        busy = [document for document in documents if document.is_busy()]
        if busy:
            self.logging.info("Question blocked by %d document(s) still processing.", len(busy))
            return DOCUMENTS_PROCESSING_ANSWER.format(names=_format_names(busy))

        failed = [document for document in documents if document.is_failed()]
        if failed:
            self.logging.info("Question blocked by %d failed document(s).", len(failed))
            return DOCUMENTS_FAILED_ANSWER.format(names=_format_names(failed))

        return None

    @staticmethod
    def _resolve_config(ai_config: LocalAIConfig | RemoteAIConfig | dict) -> LocalAIConfig | RemoteAIConfig:
        if isinstance(ai_config, (LocalAIConfig, RemoteAIConfig)):
            return ai_config
        if isinstance(ai_config, dict):
            return parse_ai_config(ai_config)
        raise TypeError("ai_config must be an AIConfig or a dict, got %s" % type(ai_config).__name__)
