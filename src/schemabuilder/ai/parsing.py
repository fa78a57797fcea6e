"""Extraction of the structured schema block from assistant replies."""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from schemabuilder.ai.base import Relationship, SchemaAction
from schemabuilder.core.logging import get_logger
from schemabuilder.models.schema import Field, Position, Reference, Table

logger = get_logger(__name__)

SCHEMA_BLOCK = re.compile(r"(?s)(?:```json\s*)?<SCHEMA_JSON>(.*?)</SCHEMA_JSON>(?:\s*```)?")


def _get(data: Dict[str, Any], key: str, kind: type, default: Any = None) -> Any:
    """Return ``data[key]`` if it has the expected type, otherwise ``default``."""
    value = data.get(key)
    if kind is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        return float(value)
    if kind is bool:
        return value if isinstance(value, bool) else default
    return value if isinstance(value, kind) else default


def _dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def convert_field(data: Dict[str, Any]) -> Field:
    references = None
    ref_data = data.get("references")
    if isinstance(ref_data, dict):
        references = Reference(
            table_id=_get(ref_data, "table_id", str, ""),
            field_id=_get(ref_data, "field_id", str, ""),
        )

    is_nullable = _get(data, "is_nullable", bool)
    not_null = _get(data, "is_not_null", bool)
    if not_null is not None:
        is_nullable = not not_null

    return Field(
        id=_get(data, "id", str, ""),
        name=_get(data, "name", str, ""),
        type=_get(data, "type", str, ""),
        is_nullable=True if is_nullable is None else is_nullable,
        is_primary_key=_get(data, "is_primary_key", bool, False),
        is_unique=_get(data, "is_unique", bool, False),
        is_foreign_key=_get(data, "is_foreign_key", bool, False),
        default_value=_get(data, "default_value", str),
        references=references,
    )


def convert_table(data: Dict[str, Any]) -> Table:
    position = Position()
    pos_data = data.get("position")
    if isinstance(pos_data, dict):
        position = Position(x=_get(pos_data, "x", float, 0.0), y=_get(pos_data, "y", float, 0.0))

    return Table(
        id=_get(data, "id", str, ""),
        name=_get(data, "name", str, ""),
        position=position,
        fields=[convert_field(f) for f in _dicts(data.get("fields"))],
    )


def convert_relationship(data: Dict[str, Any]) -> Relationship:
    return Relationship(
        id=_get(data, "id", str, ""),
        from_=_get(data, "from", str, ""),
        to=_get(data, "to", str, ""),
        type=_get(data, "type", str, ""),
        from_port=_get(data, "from_port", str, ""),
        to_port=_get(data, "to_port", str, ""),
    )


def extract_schema_action(text: str) -> Tuple[Optional[SchemaAction], str]:
    """Split an assistant reply into its structured action and display text.

    The display text has every schema block removed. The action is ``None``
    when the reply carries no block or the block is not a JSON object.
    """
    match = SCHEMA_BLOCK.search(text)
    if match is None:
        logger.debug("No schema block in assistant reply")
        return None, text

    clean_text = SCHEMA_BLOCK.sub("", text).strip()
    try:
        data = json.loads(match.group(1).strip())
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse schema block", error=str(e))
        return None, clean_text
    if not isinstance(data, dict):
        logger.warning("Schema block is not a JSON object")
        return None, clean_text

    action = SchemaAction(
        type=_get(data, "action", str, "create_schema"),
        data=data,
        tables=[convert_table(t) for t in _dicts(data.get("tables"))],
        relationships=[convert_relationship(r) for r in _dicts(data.get("relationships"))],
    )
    return action, clean_text
