"""
End-to-end tests for the DailyFeed pipeline
"""
import argparse
from unittest.mock import AsyncMock, patch

import pytest

from daily_feed.aggregators.collector import CollectionReport, SourceFailure
from daily_feed.summarizers.front_page import FrontPageGenerator
from daily_feed.utils.config import Config, FrontPageConfig, LoggingConfig, OutputConfig, OutputFormat
from daily_feed.utils.models import Paragraph, TextContent
from daily_feed.utils.serialization import load_document, save_document
from main import DailyFeed, main


@pytest.fixture
def config(tmp_path):
    return Config(
        output=OutputConfig(filename=str(tmp_path / "out" / "daily-feed.md"), title="Test Digest"),
        front_page=FrontPageConfig(enabled=False),
        logging=LoggingConfig(file=None),
    )


def _args(**overrides):
    values = {
        "config": None,
        "verbose": False,
        "format": None,
        "output": None,
        "from_ast": None,
        "export_ast": None,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestDailyFeedRun:
    @pytest.mark.asyncio
    async def test_render_from_exported_tree(self, config, sample_document, tmp_path):
        tree = save_document(sample_document, tmp_path / "tree.json")

        stats = await DailyFeed(config).run(output_format=OutputFormat.HTML, from_ast=str(tree))

        assert stats["feeds"] == 2
        assert stats["total_articles"] == 3
        assert stats["front_page"] is True
        assert stats["output_file"].endswith("daily-feed.html")
        assert "Daily Feed Digest" in (tmp_path / "out" / "daily-feed.html").read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_collect_build_and_export(self, config, sample_document, tmp_path):
        report = CollectionReport(
            feeds=sample_document.feeds,
            failures=[SourceFailure(source_name="Broken", reason="HTTP error 500")],
            issues=["Blog: skipped item 0 (Untitled): bad"],
        )
        exported = tmp_path / "exported.json"

        with patch.object(DailyFeed, "collect", AsyncMock(return_value=report)):
            stats = await DailyFeed(config).run(export_ast=str(exported))

        document = load_document(exported)
        assert document.title == "Test Digest"
        assert document.feeds == sample_document.feeds
        assert document.total_reading_time_minutes == 4
        assert document.front_page is None
        assert stats["reading_time"] == 4
        assert [failure.source_name for failure in stats["failures"]] == ["Broken"]
        assert len(stats["issues"]) == 1
        assert (tmp_path / "out" / "daily-feed.md").exists()

    @pytest.mark.asyncio
    async def test_front_page_when_enabled(self, config, sample_document, tmp_path):
        config.front_page.enabled = True
        front_page = [Paragraph(content=TextContent.plain("Summary"))]
        report = CollectionReport(feeds=sample_document.feeds)

        async def fake_generate(self, document):
            return document.with_front_page(front_page)

        with patch.object(DailyFeed, "collect", AsyncMock(return_value=report)), \
             patch.object(FrontPageGenerator, "generate", fake_generate):
            stats = await DailyFeed(config).run(output=str(tmp_path / "custom.md"))

        assert stats["front_page"] is True
        assert stats["output_file"].endswith("custom.md")
        assert "## Front Page\n\nSummary" in (tmp_path / "custom.md").read_text(encoding="utf-8")

    def test_output_path_swaps_suffix(self, config):
        daily_feed = DailyFeed(config)
        assert daily_feed.output_path(OutputFormat.JSON).name == "daily-feed.json"
        assert daily_feed.output_path(OutputFormat.MARKDOWN, "x/y.txt").as_posix() == "x/y.txt"


class TestMain:
    @pytest.mark.asyncio
    async def test_invalid_config_exits_nonzero(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("sources: 12\n", encoding="utf-8")

        assert await main(_args(config=str(path))) == 1

    @pytest.mark.asyncio
    async def test_broken_tree_exits_nonzero(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("logging:\n  file: null\n", encoding="utf-8")
        tree = tmp_path / "tree.json"
        tree.write_text('{"title": "x"}', encoding="utf-8")

        assert await main(_args(config=str(config_path), from_ast=str(tree))) == 1

    @pytest.mark.asyncio
    async def test_successful_run(self, tmp_path, sample_document, capsys):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            f"output:\n  filename: {(tmp_path / 'digest.md').as_posix()}\nlogging:\n  file: null\n",
            encoding="utf-8",
        )
        tree = save_document(sample_document, tmp_path / "tree.json")

        assert await main(_args(config=str(config_path), from_ast=str(tree), format="json")) == 0

        assert (tmp_path / "digest.json").exists()
        assert "Articles: 3" in capsys.readouterr().out
