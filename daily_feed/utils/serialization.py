"""
Interchange format for the document tree

The tree is written as JSON with every field present, nulls and empty lists
included. Loading is strict: a missing field anywhere is an error naming its
path, so a saved tree never comes back with silently defaulted values.
"""
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Union

from pydantic import ValidationError

from daily_feed.utils.logger import logger
from daily_feed.utils.models import REQUIRE_ALL_FIELDS, Document


class InterchangeError(Exception):
    """Raised when a serialized document cannot be loaded"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


def format_location(loc: Iterable[Union[str, int]]) -> str:
    """Render a validation location as ``feeds[0].articles[2].title``"""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path or "<document>"


def _first_error(error: ValidationError) -> InterchangeError:
    details = error.errors()
    first = details[0]
    path = format_location(first["loc"])

    if first["type"] == "missing_field":
        # Point at the first absent field rather than at the object holding it
        field = first["ctx"]["fields"].split(", ")[0]
        path = field if path == "<document>" else f"{path}.{field}"
        reason = "missing field"
    else:
        reason = first["msg"]

    if len(details) > 1:
        reason = f"{reason} (and {len(details) - 1} more error(s))"
    return InterchangeError(path, reason)


def document_to_dict(document: Document) -> Dict[str, Any]:
    return document.model_dump(mode="json")


def document_to_json(document: Document, indent: int = 2) -> str:
    return json.dumps(document_to_dict(document), indent=indent, ensure_ascii=False)


def document_from_dict(data: Any) -> Document:
    """Validate a decoded interchange object into a Document"""
    if not isinstance(data, dict):
        raise InterchangeError("<document>", f"expected an object, got {type(data).__name__}")
    try:
        return Document.model_validate(data, context={REQUIRE_ALL_FIELDS: True})
    except ValidationError as e:
        raise _first_error(e) from e


def document_from_json(text: str) -> Document:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InterchangeError(
            "<document>", f"malformed JSON at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e
    return document_from_dict(data)


def save_document(document: Document, path: Union[str, Path]) -> Path:
    """Write the document tree to a JSON file"""
    output_file = Path(path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, 'w', encoding='utf-8') as f:
        f.write(document_to_json(document))

    logger.info(f"Document tree exported: {output_file}")
    return output_file


def load_document(path: Union[str, Path]) -> Document:
    """Read a document tree written by save_document"""
    input_file = Path(path)
    try:
        with open(input_file, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise InterchangeError(str(input_file), f"could not be read: {e}") from e

    document = document_from_json(text)
    logger.info(f"Document tree loaded: {input_file} ({document.total_articles()} articles)")
    return document
