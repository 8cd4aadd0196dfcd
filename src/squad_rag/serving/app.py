"""FastAPI application exposing question answering as a REST API."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI
from pydantic import BaseModel

from squad_rag.qa.answer import answer_question

app = FastAPI(
    title="SQuAD RAG API",
    version="0.1.0",
    description="Answers questions from SQuAD passages stored in Pinecone.",
)


# ── Dependencies ──────────────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_retriever() -> Any:
    """Build the process-wide retriever on first use."""
    from squad_rag.ingestion.embedder import HuggingFaceEmbeddingModel
    from squad_rag.retrieval.pinecone_index import PineconeVectorIndex
    from squad_rag.retrieval.retriever import PassageRetriever

    return PassageRetriever(HuggingFaceEmbeddingModel(), PineconeVectorIndex.from_settings())


@lru_cache(maxsize=1)
def get_chat_model() -> Any:
    from squad_rag.qa.llm import get_llm

    return get_llm()


# ── Request / Response schemas ────────────────────────────────────────
class QueryRequest(BaseModel):
    """Incoming question from the user."""

    query: str
    k: int | None = None


class QueryResponse(BaseModel):
    """Answer returned by the model."""

    answer: str
    sources: list[str] = []


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/query", response_model=QueryResponse)
async def query(
    request: QueryRequest,
    retriever: Any = Depends(get_retriever),
    llm: Any = Depends(get_chat_model),
) -> QueryResponse:
    """Retrieve passages and return a grounded answer."""
    result = await answer_question(request.query, retriever, llm, k=request.k)
    return QueryResponse(answer=result.answer, sources=result.sources)
