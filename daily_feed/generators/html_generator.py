"""
HTML output generator
"""
from pathlib import Path
from typing import Iterable, List, Union

from jinja2 import Environment, FileSystemLoader

from daily_feed.generators.base import BaseGenerator
from daily_feed.processors.reading_time import format_reading_time
from daily_feed.utils.models import ContentBlock, Document, ListItem


TEMPLATE_DIR = Path(__file__).parent.parent / 'templates'
TEMPLATE_NAME = 'digest.html'


class ListRun:
    """Consecutive list items rendered as one <ul> or <ol>"""

    type = "list"

    def __init__(self, ordered: bool):
        self.ordered = ordered
        self.items: List[ListItem] = []


def group_lists(blocks: Iterable[ContentBlock]) -> List[Union[ContentBlock, ListRun]]:
    """Gather runs of list items with the same ordering into ListRuns"""
    grouped: List[Union[ContentBlock, ListRun]] = []
    for block in blocks:
        if isinstance(block, ListItem):
            last = grouped[-1] if grouped else None
            if not isinstance(last, ListRun) or last.ordered != block.ordered:
                last = ListRun(block.ordered)
                grouped.append(last)
            last.items.append(block)
        else:
            grouped.append(block)
    return grouped


class HTMLGenerator(BaseGenerator):
    """Generates a standalone HTML page for the digest"""

    format_name = "html"

    def __init__(self, config=None, template_dir: Union[str, Path, None] = None):
        super().__init__(config)
        self.template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR

        # Setup Jinja2 environment
        self.env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=True,
        )
        self.env.filters['group_lists'] = group_lists
        self.env.filters['reading_time'] = format_reading_time

    def render(self, document: Document) -> str:
        template = self.env.get_template(TEMPLATE_NAME)
        return template.render(document=document)
