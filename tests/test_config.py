"""
Tests for configuration loading
"""
import pytest

from daily_feed.utils.config import (
    Config,
    ConfigError,
    OutputConfig,
    OutputFormat,
    ReadingConfig,
    SourceEntry,
)
from daily_feed.utils.models import SourceKind


CONFIG_YAML = """
sources:
  - name: Ars Technica
    type: ars_technica
    api_token: secret
  - name: Hacker News
    type: hackernews
  - name: Blog
    type: rss
    url: https://blog.example/rss
feeds:
  - name: Legacy
    url: https://legacy.example/feed
    description: Older list
output:
  filename: out/digest.md
  title: Morning Digest
  format: html
reading:
  words_per_minute: 250
comments:
  limit: 3
  timeout: 5
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


class TestConfigLoad:
    def test_load_yaml(self, config_file):
        config = Config.load(config_file)

        assert config.output.filename == "out/digest.md"
        assert config.output.title == "Morning Digest"
        assert config.output.format == OutputFormat.HTML
        assert config.reading.words_per_minute == 250
        assert config.comments.limit == 3
        assert config.comments.timeout == 5

    def test_sources_then_legacy_feeds(self, config_file):
        sources = Config.load(config_file).get_all_sources()

        assert [source.name for source in sources] == ["Ars Technica", "Hacker News", "Blog", "Legacy"]
        assert sources[0].type == SourceKind.ARS_TECHNICA
        assert sources[0].api_token == "secret"
        assert sources[3].type == SourceKind.RSS
        assert sources[3].description == "Older list"

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        config = Config.load(path)

        assert config.get_all_sources() == []
        assert config.reading.words_per_minute == 200

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            Config.load(tmp_path / "nope.yaml")
        assert "file not found" in str(exc_info.value)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            Config.load(path)

    def test_unknown_source_type(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("sources:\n  - name: X\n    type: carrier_pigeon\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            Config.load(path)
        assert "sources.0.type" in exc_info.value.reason

    def test_rss_source_without_url(self):
        with pytest.raises(ValueError):
            SourceEntry(name="Blog", type=SourceKind.RSS)

    def test_default_config(self):
        sources = Config.default().get_all_sources()
        assert [source.type for source in sources] == [SourceKind.ARS_TECHNICA]


class TestEnvironmentDefaults:
    def test_output_from_env(self, monkeypatch):
        monkeypatch.setenv("OUTPUT_TITLE", "Env Digest")
        monkeypatch.setenv("OUTPUT_FORMAT", "json")

        output = OutputConfig()

        assert output.title == "Env Digest"
        assert output.format == OutputFormat.JSON

    def test_reading_speed_from_env(self, monkeypatch):
        monkeypatch.setenv("READING_WORDS_PER_MINUTE", "300")
        assert ReadingConfig().words_per_minute == 300

    @pytest.mark.parametrize("value", [0, 10, 5000, -1])
    def test_out_of_range_reading_speed_falls_back(self, value):
        assert ReadingConfig(words_per_minute=value).words_per_minute == 200
