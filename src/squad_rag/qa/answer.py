"""Retrieve-then-generate question answering."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from squad_rag.qa.prompts import build_answer_prompt
from squad_rag.retrieval.models import RetrievalResult

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from squad_rag.retrieval.retriever import PassageRetriever

logger = logging.getLogger(__name__)


class Answer(BaseModel):
    """LLM answer plus the passages it was given."""

    question: str
    answer: str
    passages: list[RetrievalResult] = Field(default_factory=list)

    @property
    def sources(self) -> list[str]:
        return [p.citation.vector_id or "" for p in self.passages]


async def answer_question(
    question: str,
    retriever: PassageRetriever,
    llm: BaseChatModel,
    *,
    k: int | None = None,
) -> Answer:
    """Retrieve passages for *question* and ask *llm* to answer from them."""
    passages = await retriever.search(question, k=k)
    messages = build_answer_prompt(question, passages)
    response = await llm.ainvoke(messages)
    logger.info("Answered %r from %d passage(s)", question, len(passages))
    return Answer(question=question, answer=str(response.content), passages=passages)
