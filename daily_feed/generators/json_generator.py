"""
JSON output generator
"""
from daily_feed.generators.base import BaseGenerator
from daily_feed.utils.models import Document
from daily_feed.utils.serialization import document_to_json


class JSONGenerator(BaseGenerator):
    """Writes the document tree in the interchange format"""

    format_name = "json"

    def render(self, document: Document) -> str:
        return document_to_json(document)
