"""
Base output generator interface
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from daily_feed.utils.logger import logger
from daily_feed.utils.models import Document


class BaseGenerator(ABC):
    """Renders a Document to one output format without changing it"""

    format_name: str = ""

    def __init__(self, config=None):
        self.config = config

    @abstractmethod
    def render(self, document: Document) -> str:
        """Render the whole document to a string"""
        pass

    def generate(self, document: Document, output_path: Union[str, Path]) -> Path:
        """Render the document and write it to output_path"""
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        content = self.render(document)
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(content)

        logger.info(f"{self.format_name.upper()} generated: {output_file}")
        return output_file
