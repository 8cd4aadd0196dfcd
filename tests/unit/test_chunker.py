"""Unit tests for the chunk producer."""

from __future__ import annotations

import pytest
from fakes import FakeSource, make_records

from squad_rag.ingestion.chunker import iter_chunks


@pytest.mark.parametrize(
    ("n", "chunk_size", "expected_sizes"),
    [
        (7, 3, [3, 3, 1]),
        (6, 3, [3, 3]),
        (1, 5, [1]),
        (5, 1, [1, 1, 1, 1, 1]),
        (0, 4, []),
    ],
)
def test_chunks_cover_source_in_order(n: int, chunk_size: int, expected_sizes: list[int]) -> None:
    """Concatenated chunks reproduce every row once, in source order."""
    records = make_records(n)
    chunks = list(iter_chunks(FakeSource(records), chunk_size))

    assert [len(c) for c in chunks] == expected_sizes
    ids = [doc.metadata["id"] for c in chunks for doc in c.documents]
    assert ids == [r.id for r in records]
    assert [c.offset for c in chunks] == list(range(0, n, chunk_size))


def test_documents_carry_record_fields() -> None:
    record = make_records(1)[0]
    (chunk,) = iter_chunks(FakeSource([record]), 10)
    doc = chunk.documents[0]

    assert doc.page_content == record.context
    assert doc.metadata == {
        "id": record.id,
        "question": record.question,
        "answer": record.answer,
        "context": record.context,
    }


def test_chunks_are_sliced_lazily() -> None:
    source = FakeSource(make_records(10))
    chunks = iter_chunks(source, 4)
    assert source.slices == []

    next(chunks)
    assert source.slices == [(0, 4)]

    list(chunks)
    assert source.slices == [(0, 4), (4, 4), (8, 2)]


def test_each_call_is_an_independent_sequence() -> None:
    source = FakeSource(make_records(5))
    first = iter_chunks(source, 2)
    next(first)
    second = iter_chunks(source, 2)

    assert [c.offset for c in second] == [0, 2, 4]
    assert [c.offset for c in first] == [2, 4]


def test_start_offset_resumes_mid_source() -> None:
    chunks = list(iter_chunks(FakeSource(make_records(8)), 3, start_offset=4))

    assert [c.offset for c in chunks] == [4, 7]
    assert [len(c) for c in chunks] == [3, 1]
    assert [d.metadata["id"] for c in chunks for d in c.documents] == ["q4", "q5", "q6", "q7"]


def test_keep_ids_false_drops_id_metadata() -> None:
    (chunk,) = iter_chunks(FakeSource(make_records(2)), 2, keep_ids=False)
    assert all("id" not in d.metadata for d in chunk.documents)


def test_source_error_propagates_without_partial_chunk() -> None:
    source = FakeSource(make_records(6), fail_at_offset=3)
    chunks = iter_chunks(source, 3)

    assert len(next(chunks)) == 3
    with pytest.raises(OSError, match="offset 3"):
        next(chunks)


@pytest.mark.parametrize("chunk_size", [0, -1])
def test_invalid_chunk_size_raises(chunk_size: int) -> None:
    with pytest.raises(ValueError, match="chunk_size"):
        iter_chunks(FakeSource([]), chunk_size)


def test_negative_start_offset_raises() -> None:
    with pytest.raises(ValueError, match="start_offset"):
        iter_chunks(FakeSource([]), 1, start_offset=-1)
