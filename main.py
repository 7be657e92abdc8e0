"""
Main entry point for Daily Feed
"""

import asyncio
import argparse
import sys
from pathlib import Path
from typing import Dict, Optional

from daily_feed.aggregators.collector import CollectionReport, SourceCollector, build_source
from daily_feed.generators.base import BaseGenerator
from daily_feed.generators.html_generator import HTMLGenerator
from daily_feed.generators.json_generator import JSONGenerator
from daily_feed.generators.markdown_generator import MarkdownGenerator
from daily_feed.processors.document_parser import DocumentParser
from daily_feed.processors.reading_time import format_reading_time
from daily_feed.summarizers.front_page import FrontPageGenerator
from daily_feed.utils.config import Config, ConfigError, OutputFormat
from daily_feed.utils.http_client import close_http_client, get_http_client
from daily_feed.utils.logger import logger, setup_logging
from daily_feed.utils.models import Document
from daily_feed.utils.serialization import InterchangeError, load_document, save_document


DEFAULT_CONFIG_PATH = "config.yaml"

FILE_EXTENSIONS = {
    OutputFormat.MARKDOWN: ".md",
    OutputFormat.HTML: ".html",
    OutputFormat.JSON: ".json",
}


class DailyFeed:
    """Fetches every configured source and renders the daily digest"""

    def __init__(self, config: Config):
        self.config = config
        self.parser = DocumentParser.from_config(config)
        self.generators: Dict[OutputFormat, BaseGenerator] = {
            OutputFormat.MARKDOWN: MarkdownGenerator(config),
            OutputFormat.HTML: HTMLGenerator(config),
            OutputFormat.JSON: JSONGenerator(config),
        }

    async def collect(self) -> CollectionReport:
        http_client = get_http_client()
        sources = [build_source(entry, http_client) for entry in self.config.get_all_sources()]
        if not sources:
            logger.warning("No sources configured")
        collector = SourceCollector(sources, self.parser)
        return await collector.collect()

    def build_document(self, report: CollectionReport) -> Document:
        return self.parser.build_document(
            report.feeds,
            title=self.config.output.title,
            author=self.config.output.author,
        )

    def output_path(self, output_format: OutputFormat, output: Optional[str] = None) -> Path:
        if output:
            return Path(output)
        return Path(self.config.output.filename).with_suffix(FILE_EXTENSIONS[output_format])

    async def run(
        self,
        output_format: Optional[OutputFormat] = None,
        output: Optional[str] = None,
        from_ast: Optional[str] = None,
        export_ast: Optional[str] = None,
    ) -> dict:
        """Run one pass and return summary statistics"""
        logger.info("Starting Daily Feed")
        report = CollectionReport()

        try:
            if from_ast:
                document = load_document(from_ast)
            else:
                report = await self.collect()
                document = self.build_document(report)

                if self.config.front_page.enabled:
                    document = await FrontPageGenerator(self.config).generate(document)

            if export_ast:
                save_document(document, export_ast)

            output_format = output_format or self.config.output.format
            output_file = self.generators[output_format].generate(
                document, self.output_path(output_format, output)
            )
        finally:
            close_http_client()

        logger.info("Daily Feed completed successfully")
        return {
            "feeds": len(document.feeds),
            "total_articles": document.total_articles(),
            "reading_time": document.total_reading_time_minutes,
            "front_page": document.front_page is not None,
            "output_file": str(output_file),
            "failures": report.failures,
            "issues": report.issues,
        }


def load_config(config_path: Optional[str]) -> Config:
    if config_path:
        return Config.load(config_path)
    if Path(DEFAULT_CONFIG_PATH).exists():
        return Config.load(DEFAULT_CONFIG_PATH)
    logger.info(f"No {DEFAULT_CONFIG_PATH} found, using the default sources")
    return Config.default()


def print_summary(stats: dict) -> None:
    print("\nDaily Feed Summary:")
    print(f"   Feeds: {stats['feeds']}")
    print(f"   Articles: {stats['total_articles']}")
    if stats['reading_time'] is not None:
        print(f"   Reading time: {format_reading_time(stats['reading_time'])}")
    print(f"   Front page: {'yes' if stats['front_page'] else 'no'}")
    print(f"   Output: {stats['output_file']}")

    if stats['failures']:
        print(f"   Skipped sources ({len(stats['failures'])}):")
        for failure in stats['failures']:
            print(f"     - {failure.source_name}: {failure.reason}")
    if stats['issues']:
        print(f"   Item issues ({len(stats['issues'])}):")
        for issue in stats['issues']:
            print(f"     - {issue}")


async def main(args: argparse.Namespace) -> int:
    """Main entry point"""
    try:
        config = load_config(args.config)
    except ConfigError as e:
        setup_logging("DEBUG" if args.verbose else "INFO", None)
        logger.error(str(e))
        return 1

    setup_logging("DEBUG" if args.verbose else config.logging.level, config.logging.file)

    daily_feed = DailyFeed(config)
    try:
        stats = await daily_feed.run(
            output_format=OutputFormat(args.format) if args.format else None,
            output=args.output,
            from_ast=args.from_ast,
            export_ast=args.export_ast,
        )
    except InterchangeError as e:
        logger.error(f"Could not load document tree: {e}")
        return 1

    print_summary(stats)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Daily Feed - aggregate news sources into a daily digest"
    )
    parser.add_argument(
        "-c", "--config",
        help=f"Path to a YAML or JSON config file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--export-ast",
        metavar="PATH",
        help="Also write the document tree as JSON to PATH",
    )
    parser.add_argument(
        "--from-ast",
        metavar="PATH",
        help="Render a previously exported document tree instead of fetching",
    )
    parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in OutputFormat],
        help="Output format (default: from config)",
    )
    parser.add_argument(
        "-o", "--output",
        metavar="PATH",
        help="Output file (default: output.filename from config)",
    )

    args = parser.parse_args()

    sys.exit(asyncio.run(main(args)))
