"""Command-line entry point.

Ingest
------
    squad-rag ingest                         # SQuAD train set → Pinecone
    squad-rag ingest --dataset data.csv --start-offset 4200

Ask
---
    squad-rag ask "When was the college of engineering established?"

``PINECONE_API_KEY``, ``PINECONE_ENVIRONMENT`` and ``PINECONE_INDEX``
must be set (environment or ``.env``); both commands check them before
any network access.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from squad_rag.config import settings
from squad_rag.errors import SquadRagError

logger = logging.getLogger("squad_rag")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="squad-rag", description="SQuAD retrieval-augmented QA")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Embed the dataset and upsert it into the index")
    ingest.add_argument(
        "--dataset",
        default=settings.squad_url,
        help="SQuAD JSON URL or path, or a flattened CSV file",
    )
    ingest.add_argument("--namespace", default=settings.pinecone_namespace)
    ingest.add_argument("--chunk-size", type=int, default=settings.chunk_size)
    ingest.add_argument("--batch-size", type=int, default=settings.batch_size)
    ingest.add_argument("--upsert-batch-size", type=int, default=settings.upsert_batch_size)
    ingest.add_argument(
        "--start-offset",
        type=int,
        default=0,
        help="Resume from this row (as printed by a failed run)",
    )
    ingest.add_argument(
        "--regenerate-ids",
        dest="keep_ids",
        action="store_false",
        default=settings.keep_dataset_ids,
        help="Assign fresh vector ids instead of dataset question ids",
    )
    ingest.add_argument(
        "--keep-duplicate-contexts",
        dest="deduplicate",
        action="store_false",
        default=settings.deduplicate_contexts,
        help="Embed every question row, even when the passage repeats",
    )
    ingest.add_argument("--no-progress", action="store_true", help="Hide the progress bar")

    ask = sub.add_parser("ask", help="Answer a question from the indexed passages")
    ask.add_argument("question")
    ask.add_argument("-k", type=int, default=settings.retrieval_k, help="Passages to retrieve")
    ask.add_argument(
        "--passages-only",
        action="store_true",
        help="Print retrieved passages without calling the LLM",
    )
    return parser


def _load_source(args: argparse.Namespace):
    from squad_rag.ingestion.loader import load_squad
    from squad_rag.ingestion.source import DataFrameSource

    if str(args.dataset).lower().endswith(".csv"):
        return DataFrameSource.from_csv(args.dataset, deduplicate_contexts=args.deduplicate)
    return DataFrameSource(load_squad(args.dataset, deduplicate_contexts=args.deduplicate))


async def _ingest(args: argparse.Namespace) -> int:
    from squad_rag.ingestion.embedder import HuggingFaceEmbeddingModel
    from squad_rag.ingestion.pipeline import IngestionPipeline
    from squad_rag.ingestion.progress import TqdmProgressReporter
    from squad_rag.retrieval.pinecone_index import PineconeVectorIndex

    index = PineconeVectorIndex.from_settings()
    try:
        source = _load_source(args)
    except Exception:
        index.close()
        raise

    pipeline = IngestionPipeline(
        source,
        HuggingFaceEmbeddingModel(),
        index,
        TqdmProgressReporter(disable=args.no_progress),
        index_name=settings.pinecone_index,
        dimension=settings.embedding_dimension,
        namespace=args.namespace,
        chunk_size=args.chunk_size,
        batch_size=args.batch_size,
        upsert_batch_size=args.upsert_batch_size,
        keep_ids=args.keep_ids,
    )
    report = await pipeline.run(start_offset=args.start_offset)
    print(report.summary(settings.pinecone_index))
    return 0 if report.ok else 1


async def _ask(args: argparse.Namespace) -> int:
    from squad_rag.ingestion.embedder import HuggingFaceEmbeddingModel
    from squad_rag.retrieval.pinecone_index import PineconeVectorIndex
    from squad_rag.retrieval.retriever import PassageRetriever

    index = PineconeVectorIndex.from_settings()
    try:
        retriever = PassageRetriever(HuggingFaceEmbeddingModel(), index)
        if args.passages_only:
            for result in await retriever.search(args.question, k=args.k):
                print(result)
            return 0

        from squad_rag.qa.answer import answer_question
        from squad_rag.qa.llm import get_llm

        answer = await answer_question(args.question, retriever, get_llm(), k=args.k)
        print(answer.answer)
        for passage in answer.passages:
            print(f"  {passage.citation.short_ref()} score={passage.citation.score}")
        return 0
    finally:
        index.close()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        settings.require_pinecone()
        if args.command == "ingest":
            return asyncio.run(_ingest(args))
        return asyncio.run(_ask(args))
    except SquadRagError as exc:
        logger.error("%s", exc)
        print(f"Failed: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
