"""
Configuration management for Daily Feed

Defaults come from environment variables (a ``.env`` file is honoured); the
source list and output settings come from a YAML or JSON config file.
"""
import os
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from daily_feed.processors.reading_time import resolve_words_per_minute
from daily_feed.utils.constants import CommentConstants, HTTPConstants, ReadingConstants
from daily_feed.utils.models import SourceKind


# Load environment variables from .env file
load_dotenv()


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or is structurally invalid"""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Invalid configuration {self.path}: {reason}")


class SourceEntry(BaseModel):
    name: str
    type: SourceKind
    url: Optional[str] = None
    description: Optional[str] = None
    api_token: Optional[str] = None

    @model_validator(mode="after")
    def _rss_needs_url(self) -> "SourceEntry":
        if self.type == SourceKind.RSS and not self.url:
            raise ValueError(f"rss source '{self.name}' needs a url")
        return self


class FeedEntry(BaseModel):
    """Plain RSS feed from the older ``feeds`` list"""
    name: str
    url: str
    description: Optional[str] = None

    def to_source(self) -> SourceEntry:
        return SourceEntry(name=self.name, type=SourceKind.RSS, url=self.url, description=self.description)


class OutputFormat(str, Enum):
    MARKDOWN = "markdown"
    HTML = "html"
    JSON = "json"


class OutputConfig(BaseModel):
    filename: str = Field(default_factory=lambda: os.getenv("OUTPUT_FILENAME", "output/daily-feed.md"))
    title: str = Field(default_factory=lambda: os.getenv("OUTPUT_TITLE", "Daily Feed Digest"))
    author: str = Field(default_factory=lambda: os.getenv("OUTPUT_AUTHOR", "RSS Aggregator"))
    format: OutputFormat = Field(
        default_factory=lambda: os.getenv("OUTPUT_FORMAT", OutputFormat.MARKDOWN.value),
        validate_default=True,
    )


class ReadingConfig(BaseModel):
    words_per_minute: int = Field(
        default_factory=lambda: int(
            os.getenv("READING_WORDS_PER_MINUTE", str(ReadingConstants.DEFAULT_WORDS_PER_MINUTE))
        )
    )

    @field_validator("words_per_minute")
    @classmethod
    def clamp_words_per_minute(cls, v):
        return resolve_words_per_minute(v)


class CommentsConfig(BaseModel):
    limit: int = Field(
        default_factory=lambda: int(os.getenv("COMMENT_LIMIT", str(CommentConstants.DEFAULT_LIMIT))),
        ge=0,
    )
    timeout: float = Field(
        default_factory=lambda: float(os.getenv("COMMENT_TIMEOUT", str(CommentConstants.DEFAULT_TIMEOUT))),
        gt=0,
    )


class FrontPageConfig(BaseModel):
    enabled: bool = Field(default_factory=lambda: os.getenv("FRONT_PAGE_ENABLED", "false").lower() == "true")
    api_url: str = Field(default_factory=lambda: os.getenv("LLM_API_URL", "http://localhost:8000/v1"))
    api_key: str = Field(default_factory=lambda: os.getenv("LLM_API_KEY", "not-needed"))
    model: str = Field(default_factory=lambda: os.getenv("LLM_MODEL", "llama-3.1-8b-instruct"))
    temperature: float = Field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.3")))
    max_tokens: int = Field(default_factory=lambda: int(os.getenv("LLM_MAX_TOKENS", "2000")))
    timeout: int = Field(default_factory=lambda: int(os.getenv("LLM_TIMEOUT", str(HTTPConstants.AI_TIMEOUT))))


class LoggingConfig(BaseModel):
    level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    file: Optional[str] = Field(default_factory=lambda: os.getenv("LOG_FILE", "logs/daily-feed.log"))


class Config(BaseModel):
    sources: List[SourceEntry] = Field(default_factory=list)
    feeds: List[FeedEntry] = Field(default_factory=list)
    output: OutputConfig = Field(default_factory=OutputConfig)
    reading: ReadingConfig = Field(default_factory=ReadingConfig)
    comments: CommentsConfig = Field(default_factory=CommentsConfig)
    front_page: FrontPageConfig = Field(default_factory=FrontPageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Union[str, Path]) -> "Config":
        """Load configuration from a YAML (or JSON) file"""
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(path, "file not found")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(path, f"could not be read: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(path, "top level must be a mapping")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
                for error in e.errors()
            )
            raise ConfigError(path, problems) from e

    @classmethod
    def default(cls) -> "Config":
        """Configuration used when no config file is available"""
        return cls(sources=[SourceEntry(name="Ars Technica", type=SourceKind.ARS_TECHNICA)])

    def get_all_sources(self) -> List[SourceEntry]:
        """Configured sources followed by the plain feeds, in file order"""
        return list(self.sources) + [feed.to_source() for feed in self.feeds]
