"""Keyword relevance scoring of document pages against a question.

score = total keyword hits × distinct keywords hit / sqrt(page length)

Pages with several different keywords rise to the top; very long pages that
only mention a keyword in passing are pushed down. Matching is literal
whole-word matching: there is no stemming, so "growth" does not match "grew".
"""

import math
import re
from typing import Iterable

from shared.helper.HelperConfig import HelperConfig
from shared.models.answer import Passage
from shared.models.document import Document

MIN_KEYWORD_LENGTH = 3

STOP_WORDS = frozenset({
    # articles / conjunctions / prepositions
    "the", "and", "for", "but", "with", "from", "into", "about", "than", "then",
    # pronouns / determiners
    "this", "that", "these", "those", "there", "their", "they", "you", "your", "any",
    # auxiliary verbs
    "are", "was", "were", "been", "being", "has", "have", "had", "does", "did",
    # wh-words
    "what", "when", "where", "which", "who", "whom", "whose", "why", "how",
    # modal verbs
    "can", "could", "would", "should", "will", "shall", "may", "might", "must",
})

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def tokenize_question(question: str) -> list[str]:
    """Reduce a question to its distinct keywords, in first-seen order.

    Args:
        question (str): Free-text question.

    Returns:
        list[str]: Lowercase keywords; empty if only short or stop words remain.
    """
    cleaned = _PUNCTUATION_RE.sub("", question.lower())
    keywords: list[str] = []
    for token in cleaned.split():
        if len(token) < MIN_KEYWORD_LENGTH or token in STOP_WORDS or token in keywords:
            continue
        keywords.append(token)
    return keywords


def compile_keyword_patterns(keywords: Iterable[str]) -> dict[str, re.Pattern]:
    return {keyword: re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE) for keyword in keywords}


def score_text(text: str, patterns: dict[str, re.Pattern]) -> float:
    """Score one text against pre-compiled keyword patterns; 0.0 means no keyword matched."""
    if not text:
        return 0.0
    total_hits = 0
    distinct_hits = 0
    for pattern in patterns.values():
        hits = len(pattern.findall(text))
        if hits:
            total_hits += hits
            distinct_hits += 1
    if not total_hits:
        return 0.0
    return total_hits * distinct_hits / math.sqrt(len(text))


class RelevanceScorer:
    """Ranks the pages of ready documents by keyword relevance. Pure, no side effects."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()

    def score(self, question: str, documents: list[Document]) -> list[Passage]:
        """Score every page of every ready document against the question.

        Args:
            question (str): The user's question.
            documents (list[Document]): Documents to search; non-ready ones are ignored.

        Returns:
            list[Passage]: Matching pages, best first. Ties keep document/page order.
        """
        keywords = tokenize_question(question)
        if not keywords:
            self.logging.debug("No keywords left in question %r", question[:80])
            return []

        patterns = compile_keyword_patterns(keywords)
        passages: list[Passage] = []
        for document in documents:
            if not document.is_ready():
                continue
            for index, text in enumerate(document.pages):
                score = score_text(text, patterns)
                if score > 0:
                    passages.append(
                        Passage(
                            document_name=document.name,
                            page_number=index + 1,
                            text=text,
                            score=score,
                        )
                    )

        # list.sort is stable, also with reverse=True
        passages.sort(key=lambda passage: passage.score, reverse=True)
        self.logging.debug("Keywords %s matched %d page(s)", keywords, len(passages))
        return passages
