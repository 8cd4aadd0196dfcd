"""Prompt templates for answering questions from retrieved passages."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from squad_rag.retrieval.models import RetrievalResult

ANSWER_SYSTEM = """\
You are a helpful assistant answering general-knowledge questions.

Answer using **only** the numbered passages provided by the user.
Cite the passages you rely on with their number in square brackets,
e.g. [1] or [2][3].  If the passages do not contain the answer, say
that you do not know instead of guessing.
"""


def build_answer_prompt(query: str, results: list[RetrievalResult]) -> list[BaseMessage]:
    """Assemble the messages for a retrieval-augmented answer."""
    if results:
        context = _format_passages_numbered(results)
    else:
        context = "(no passages found)"
    user_msg = (
        f"Passages:\n{context}\n\n"
        f"Question: {query}\n\n"
        "Answer concisely based on the passages above."
    )
    return [
        SystemMessage(content=ANSWER_SYSTEM),
        HumanMessage(content=user_msg),
    ]


def _format_passages_numbered(results: list[RetrievalResult]) -> str:
    """Numbered listing suitable for citation references [1], [2], …"""
    parts: list[str] = []
    for i, r in enumerate(results, 1):
        score = r.citation.score
        score_str = f" score={score:.3f}" if score is not None else ""
        parts.append(f"[{i}]{score_str}\n{r.content}")
    return "\n\n".join(parts)
