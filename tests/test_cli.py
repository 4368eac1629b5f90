"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from arborist.cli import _setup_logging, app
from arborist.config import AppConfig
from arborist.errors import StoreError
from arborist.index.search import SearchResult

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text('collection_name = "test_files"\n')
    return path


@pytest.fixture
def services(store, embeddings, llm):
    """Route the CLI to in-process doubles."""
    store.close = MagicMock()
    with patch("arborist.cli.OllamaClient", return_value=llm), patch(
        "arborist.cli._build_store", return_value=store
    ), patch("arborist.cli._build_embeddings", return_value=embeddings):
        yield


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("arborist.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("arborist.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestScanCommand:
    """Tests for the scan command."""

    def test_scan_indexes_files(self, services, store, config_file, tmp_path: Path) -> None:
        """Scan prints the results table and indexes every file."""
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "notes.txt").write_text("Meeting notes about the budget.")
        (docs / "data.xyz").write_text("opaque")

        result = runner.invoke(app, ["scan", str(docs), "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Directory Scan Results" in result.output
        assert "Inserted: 2, already indexed: 0, failed: 0" in result.output
        assert store.count() == 2

    def test_scan_empty_directory(self, services, config_file, tmp_path: Path) -> None:
        """An empty directory reports that nothing was indexed."""
        empty = tmp_path / "empty"
        empty.mkdir()

        result = runner.invoke(app, ["scan", str(empty), "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Nothing indexed." in result.output
        assert "Inserted: 0" in result.output

    def test_scan_twice_skips(self, services, store, config_file, tmp_path: Path) -> None:
        """A second scan skips files already indexed."""
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "notes.txt").write_text("Meeting notes.")

        runner.invoke(app, ["scan", str(docs), "--config", str(config_file)])
        result = runner.invoke(app, ["scan", str(docs), "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "already indexed" in result.output
        assert "Inserted: 0, already indexed: 1, failed: 0" in result.output
        assert store.count() == 1

    def test_scan_folder_summaries(self, services, llm, config_file, tmp_path: Path) -> None:
        """--folder-summaries also summarizes folders."""
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "notes.txt").write_text("Meeting notes.")

        result = runner.invoke(
            app, ["scan", str(docs), "--folder-summaries", "--config", str(config_file)]
        )

        assert result.exit_code == 0, result.output
        assert any(
            request["prompt"].startswith("Summarize the contents of folder:")
            for request in llm.requests
        )

    def test_scan_llm_unreachable(self, config_file, tmp_path: Path) -> None:
        """An unreachable LLM exits 1 before touching the store."""
        client = MagicMock()
        client.is_available.return_value = False
        with patch("arborist.cli.OllamaClient", return_value=client), patch(
            "arborist.cli._build_store"
        ) as mock_store:
            result = runner.invoke(app, ["scan", str(tmp_path), "--config", str(config_file)])

        assert result.exit_code == 1
        assert "unreachable" in result.output
        mock_store.assert_not_called()

    def test_scan_not_a_directory(self, services, config_file, tmp_path: Path) -> None:
        """A file path is rejected."""
        path = tmp_path / "file.txt"
        path.write_text("x")

        result = runner.invoke(app, ["scan", str(path), "--config", str(config_file)])

        assert result.exit_code != 0

    def test_scan_store_error(self, llm, embeddings, config_file, tmp_path: Path) -> None:
        """Store failures exit 1 and still close the store."""
        store = MagicMock()
        store.ensure_collection.side_effect = StoreError("Failed to create collection")
        with patch("arborist.cli.OllamaClient", return_value=llm), patch(
            "arborist.cli._build_store", return_value=store
        ), patch("arborist.cli._build_embeddings", return_value=embeddings):
            result = runner.invoke(app, ["scan", str(tmp_path), "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Failed to create collection" in result.output
        store.close.assert_called_once()

    def test_scan_config_error(self, tmp_path: Path) -> None:
        """A missing config file exits 1."""
        result = runner.invoke(
            app, ["scan", str(tmp_path), "--config", str(tmp_path / "missing.toml")]
        )

        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestQueryCommand:
    """Tests for the query command."""

    def test_query_prints_table(self, services, config_file) -> None:
        """Matches are printed with their scores."""
        hits = [
            SearchResult(path=Path("/d/r.md"), name="r.md", score=0.91, size=5, summary="Revenue")
        ]
        with patch("arborist.cli.QueryEngine") as mock_engine:
            mock_engine.return_value.search.return_value = hits
            result = runner.invoke(
                app, ["query", "quarterly report", "--top-k", "3", "--config", str(config_file)]
            )

        assert result.exit_code == 0, result.output
        assert "0.9100" in result.output
        assert "Revenue" in result.output
        mock_engine.return_value.search.assert_called_once_with(
            "quarterly report", top_k=3, sparse=False
        )

    def test_query_no_matches(self, services, config_file) -> None:
        """An empty collection prints a notice."""
        result = runner.invoke(app, ["query", "anything", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "No matches found." in result.output

    def test_query_sparse_flag(self, services, config_file) -> None:
        """--sparse selects the sparse space."""
        with patch("arborist.cli.QueryEngine") as mock_engine:
            mock_engine.return_value.search.return_value = []
            runner.invoke(app, ["query", "budget", "--sparse", "--config", str(config_file)])

        assert mock_engine.return_value.search.call_args.kwargs["sparse"] is True

    def test_query_rejects_top_k_zero(self, config_file) -> None:
        """--top-k below one is a usage error."""
        with patch("arborist.cli._build_store") as mock_store:
            result = runner.invoke(
                app, ["query", "x", "--top-k", "0", "--config", str(config_file)]
            )

        assert result.exit_code == 2
        mock_store.assert_not_called()


class TestPruneCommand:
    """Tests for the prune command."""

    def test_prune(self, config_file) -> None:
        """Prune reports how many points were removed."""
        store = MagicMock()
        store.remove_missing_files.return_value = 3
        with patch("arborist.cli._build_store", return_value=store):
            result = runner.invoke(app, ["prune", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Removed 3 orphaned files." in result.output
        store.close.assert_called_once()


class TestConfigCommand:
    """Tests for the config command."""

    def test_config_prints_effective_values(self, config_file) -> None:
        """The effective config is printed as TOML."""
        result = runner.invoke(app, ["config", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert 'collection_name = "test_files"' in result.output
        assert "top_k_results = 5" in result.output

    def test_query_connects_with_configured_store(self, config_file) -> None:
        """Query connects with the configured URL and search settings."""
        with patch("arborist.cli.QdrantIndexStore") as mock_store_cls, patch(
            "arborist.cli._build_embeddings"
        ), patch("arborist.cli.QueryEngine") as mock_engine:
            mock_engine.return_value.search.return_value = []
            runner.invoke(app, ["query", "x", "--config", str(config_file)])

        config = AppConfig(collection_name="test_files")
        mock_store_cls.connect.assert_called_once_with(
            config.db_url,
            "test_files",
            timeout=config.db_timeout,
            hnsw_ef=config.query.hnsw_ef,
        )
