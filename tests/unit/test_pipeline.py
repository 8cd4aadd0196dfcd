"""Unit tests for the ingestion pipeline driver."""

from __future__ import annotations

import asyncio

import pytest
from fakes import (
    FakeEmbeddingModel,
    FakeSource,
    FakeVectorIndex,
    RecordingProgressReporter,
    make_records,
)

from squad_rag.errors import ConfigurationError
from squad_rag.ingestion.pipeline import IngestionPipeline, IngestionReport, PipelineState


def _pipeline(
    source: FakeSource,
    *,
    model: FakeEmbeddingModel | None = None,
    index: FakeVectorIndex | None = None,
    progress: RecordingProgressReporter | None = None,
    **kwargs,
) -> IngestionPipeline:
    params = {"chunk_size": 3, "batch_size": 3, "upsert_batch_size": 100, "namespace": "default"}
    params.update(kwargs)
    return IngestionPipeline(
        source,
        model or FakeEmbeddingModel(),
        index or FakeVectorIndex(),
        progress or RecordingProgressReporter(),
        index_name="test-index",
        dimension=4,
        embedding_model="fake-model",
        **params,
    )


class TestHappyPath:
    def test_seven_rows_three_upserts(self) -> None:
        index = FakeVectorIndex()
        progress = RecordingProgressReporter()
        pipeline = _pipeline(FakeSource(make_records(7)), index=index, progress=progress)

        report = asyncio.run(pipeline.run())

        assert report.ok
        assert pipeline.state is PipelineState.DONE
        assert [len(call) for call in index.upsert_calls] == [3, 3, 1]
        assert progress.history == [3, 6, 7]
        assert progress.started_with == (7, 0)
        assert progress.stopped
        assert report.indexed == report.total == 7
        assert report.summary("test-index") == "Done, 7 rows indexed into index 'test-index'"

    def test_upserts_preserve_source_order(self) -> None:
        index = FakeVectorIndex()
        asyncio.run(_pipeline(FakeSource(make_records(8)), index=index, batch_size=2).run())

        flat = [vid for call in index.upsert_calls for vid in call]
        assert flat == [f"q{i}" for i in range(8)]

    def test_creates_missing_index_with_dimension(self) -> None:
        index = FakeVectorIndex()
        asyncio.run(_pipeline(FakeSource(make_records(1)), index=index).run())
        assert index.indexes == {"test-index": 4}

    def test_existing_index_is_reused(self) -> None:
        index = FakeVectorIndex(exists=True)
        report = asyncio.run(_pipeline(FakeSource(make_records(2)), index=index).run())

        assert report.ok
        assert len(index.store["default"]) == 2

    def test_empty_source_finishes_without_upserts(self) -> None:
        index = FakeVectorIndex()
        report = asyncio.run(_pipeline(FakeSource([]), index=index).run())

        assert report.ok
        assert report.total == 0
        assert index.upsert_calls == []

    def test_model_initialised_once(self) -> None:
        model = FakeEmbeddingModel()
        asyncio.run(_pipeline(FakeSource(make_records(5)), model=model).run())
        assert model.init_calls == ["fake-model"]

    def test_handles_are_closed(self) -> None:
        source = FakeSource(make_records(2))
        index = FakeVectorIndex()
        asyncio.run(_pipeline(source, index=index).run())
        assert source.closed and index.closed

    def test_rerun_is_idempotent_with_dataset_ids(self) -> None:
        index = FakeVectorIndex()
        records = make_records(4)
        asyncio.run(_pipeline(FakeSource(records), index=index).run())
        asyncio.run(_pipeline(FakeSource(records), index=index).run())
        assert len(index.store["default"]) == 4

    def test_regenerated_ids(self) -> None:
        index = FakeVectorIndex()
        asyncio.run(_pipeline(FakeSource(make_records(4)), index=index, keep_ids=False).run())

        ids = set(index.store["default"])
        assert len(ids) == 4
        assert not ids & {f"q{i}" for i in range(4)}


class TestResume:
    def test_start_offset_ingests_remaining_rows(self) -> None:
        index = FakeVectorIndex()
        progress = RecordingProgressReporter()
        pipeline = _pipeline(FakeSource(make_records(7)), index=index, progress=progress)

        report = asyncio.run(pipeline.run(start_offset=4))

        assert report.ok
        assert [vid for call in index.upsert_calls for vid in call] == ["q4", "q5", "q6"]
        assert progress.started_with == (7, 4)
        assert progress.counter.count == 7
        assert report.resume_offset == 7

    def test_start_offset_beyond_source_fails(self) -> None:
        report = asyncio.run(_pipeline(FakeSource(make_records(2))).run(start_offset=5))
        assert report.state is PipelineState.FAILED
        assert isinstance(report.error, ValueError)


class TestFailures:
    def test_embedding_failure_stops_run(self) -> None:
        error = RuntimeError("cuda out of memory")
        model = FakeEmbeddingModel(fail_on={"passage 4": error})
        index = FakeVectorIndex()
        progress = RecordingProgressReporter()
        pipeline = _pipeline(FakeSource(make_records(7)), model=model, index=index, progress=progress)

        report = asyncio.run(pipeline.run())

        assert pipeline.state is PipelineState.FAILED
        assert report.error is error
        assert report.indexed == 3
        assert report.resume_offset == 3
        assert progress.history == [3]
        assert progress.stopped
        assert set(index.store["default"]) == {"q0", "q1", "q2"}

    def test_upsert_failure_keeps_committed_rows(self) -> None:
        index = FakeVectorIndex(fail_on_upsert_call=2)
        report = asyncio.run(_pipeline(FakeSource(make_records(7)), index=index).run())

        assert not report.ok
        assert isinstance(report.error, ConnectionError)
        assert report.indexed == 3
        assert "resume with --start-offset 3" in report.summary("test-index")

    def test_index_creation_failure_aborts_before_embedding(self) -> None:
        model = FakeEmbeddingModel()
        source = FakeSource(make_records(3))
        index = FakeVectorIndex(ensure_error=PermissionError("forbidden"))
        progress = RecordingProgressReporter()

        report = asyncio.run(
            _pipeline(source, model=model, index=index, progress=progress).run()
        )

        assert isinstance(report.error, PermissionError)
        assert model.trace == []
        assert source.slices == []
        assert progress.started_with is None
        assert source.closed and index.closed

    def test_source_failure_is_reported(self) -> None:
        source = FakeSource(make_records(7), fail_at_offset=3)
        report = asyncio.run(_pipeline(source).run())

        assert isinstance(report.error, OSError)
        assert report.indexed == 3

    def test_raise_for_status_reraises_original(self) -> None:
        error = RuntimeError("boom")
        report = IngestionReport(state=PipelineState.FAILED, error=error)
        with pytest.raises(RuntimeError) as exc_info:
            report.raise_for_status()
        assert exc_info.value is error

    def test_raise_for_status_noop_when_done(self) -> None:
        IngestionReport(state=PipelineState.DONE, total=1, indexed=1).raise_for_status()

    def test_model_width_mismatch_fails_before_embedding(self) -> None:
        model = FakeEmbeddingModel(width=8)
        index = FakeVectorIndex()
        report = asyncio.run(_pipeline(FakeSource(make_records(3)), model=model, index=index).run())

        assert isinstance(report.error, ConfigurationError)
        assert "8-d" in str(report.error)
        assert model.trace == []
        assert index.upsert_calls == []
        assert index.closed
