"""Unit tests for configuration checks and the CLI entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from squad_rag import cli
from squad_rag.config import Settings, settings
from squad_rag.errors import ConfigurationError
from squad_rag.ingestion.pipeline import IngestionReport, PipelineState


@pytest.fixture()
def pinecone_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "pinecone_api_key", "key")
    monkeypatch.setattr(settings, "pinecone_environment", "us-east-1")
    monkeypatch.setattr(settings, "pinecone_index", "squad")


class TestRequirePinecone:
    def test_lists_every_missing_variable(self) -> None:
        config = Settings(_env_file=None, pinecone_api_key="", pinecone_environment="", pinecone_index="")
        with pytest.raises(ConfigurationError) as exc_info:
            config.require_pinecone()
        message = str(exc_info.value)
        for name in ("PINECONE_API_KEY", "PINECONE_ENVIRONMENT", "PINECONE_INDEX"):
            assert name in message

    def test_passes_when_complete(self) -> None:
        Settings(
            _env_file=None, pinecone_api_key="k", pinecone_environment="e", pinecone_index="i"
        ).require_pinecone()

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PINECONE_API_KEY", "from-env")
        monkeypatch.setenv("CHUNK_SIZE", "7")
        config = Settings(_env_file=None)
        assert config.pinecone_api_key == "from-env"
        assert config.chunk_size == 7


class TestMain:
    def test_missing_api_key_aborts_before_io(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr(settings, "pinecone_api_key", "")
        monkeypatch.setattr(settings, "pinecone_environment", "us-east-1")
        monkeypatch.setattr(settings, "pinecone_index", "squad")

        with patch("squad_rag.ingestion.loader.load_squad") as load, patch(
            "squad_rag.retrieval.pinecone_index.Pinecone"
        ) as client:
            code = cli.main(["ingest"])

        assert code == 2
        load.assert_not_called()
        client.assert_not_called()
        assert "PINECONE_API_KEY" in capsys.readouterr().err

    def test_ingest_reports_done(
        self, pinecone_env: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        report = IngestionReport(state=PipelineState.DONE, total=7, indexed=7)
        pipeline = MagicMock()
        pipeline.run = AsyncMock(return_value=report)

        with patch("squad_rag.retrieval.pinecone_index.Pinecone"), patch.object(
            cli, "_load_source", return_value=MagicMock()
        ), patch("squad_rag.ingestion.pipeline.IngestionPipeline", return_value=pipeline) as ctor:
            code = cli.main(["ingest", "--chunk-size", "3", "--start-offset", "0", "--no-progress"])

        assert code == 0
        assert ctor.call_args.kwargs["chunk_size"] == 3
        pipeline.run.assert_awaited_once_with(start_offset=0)
        assert "Done, 7 rows indexed into index 'squad'" in capsys.readouterr().out

    def test_ingest_failure_exit_code(
        self, pinecone_env: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        report = IngestionReport(
            state=PipelineState.FAILED, total=7, indexed=3, error=ConnectionError("down")
        )
        pipeline = MagicMock()
        pipeline.run = AsyncMock(return_value=report)

        with patch("squad_rag.retrieval.pinecone_index.Pinecone"), patch.object(
            cli, "_load_source", return_value=MagicMock()
        ), patch("squad_rag.ingestion.pipeline.IngestionPipeline", return_value=pipeline):
            code = cli.main(["ingest"])

        assert code == 1
        assert "resume with --start-offset 3" in capsys.readouterr().out

    def test_regenerate_ids_flag(self, pinecone_env: None) -> None:
        pipeline = MagicMock()
        pipeline.run = AsyncMock(return_value=IngestionReport(state=PipelineState.DONE))

        with patch("squad_rag.retrieval.pinecone_index.Pinecone"), patch.object(
            cli, "_load_source", return_value=MagicMock()
        ), patch("squad_rag.ingestion.pipeline.IngestionPipeline", return_value=pipeline) as ctor:
            cli.main(["ingest", "--regenerate-ids"])

        assert ctor.call_args.kwargs["keep_ids"] is False

    def test_unreadable_csv_exits_cleanly(
        self, pinecone_env: None, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch("squad_rag.retrieval.pinecone_index.Pinecone"):
            code = cli.main(["ingest", "--dataset", str(tmp_path / "missing.csv")])

        assert code == 2
        err = capsys.readouterr().err
        assert err.startswith("Failed: ")
        assert "missing.csv" in err

    def test_csv_dataset_honours_dedupe_flag(self, pinecone_env: None, tmp_path: Path) -> None:
        path = tmp_path / "rows.csv"
        path.write_text("id,context,question,answer\nq1,c,?,a\nq2,c,??,b\n")
        pipeline = MagicMock()
        pipeline.run = AsyncMock(return_value=IngestionReport(state=PipelineState.DONE))

        with patch("squad_rag.retrieval.pinecone_index.Pinecone"), patch(
            "squad_rag.ingestion.pipeline.IngestionPipeline", return_value=pipeline
        ) as ctor:
            cli.main(["ingest", "--dataset", str(path)])
            cli.main(["ingest", "--dataset", str(path), "--keep-duplicate-contexts"])

        deduped, kept = (call.args[0] for call in ctor.call_args_list)
        assert deduped.row_count() == 1
        assert kept.row_count() == 2
