"""
Parameter Schema Module.

Builds JSON schemas from the declared parameter tree and validates values
and whole parameter documents against them using jsonschema.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import jsonschema
from loguru import logger

if TYPE_CHECKING:
    from acceptor.store.parameter_handler import Entry, Section


DRAFT7 = "http://json-schema.org/draft-07/schema#"


class SchemaValidationError(Exception):
    """Raised when a value or parameter document fails schema validation."""

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def validate(data: Any, schema: Dict[str, Any], name: str) -> None:
    """
    Validate ``data`` against ``schema``.

    Args:
        data: Value or document to validate.
        schema: JSON schema (draft 7).
        name: Label used in the error message.

    Raises:
        SchemaValidationError: If validation fails, with details of all errors.
    """
    validator = jsonschema.Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))

    if errors:
        error_messages = []
        for error in errors:
            path = " -> ".join(str(p) for p in error.absolute_path) or "(root)"
            error_messages.append(f"  [{path}] {error.message}")

        all_errors = "\n".join(error_messages)
        raise SchemaValidationError(
            f"Schema validation failed for '{name}' "
            f"({len(errors)} error(s)):\n{all_errors}",
            errors=error_messages,
        )

    logger.debug(f"Validation passed: {name}")


def check_schema(schema: Dict[str, Any], name: str) -> None:
    """Reject a malformed schema fragment at declaration time."""
    try:
        jsonschema.Draft7Validator.check_schema(schema)
    except jsonschema.SchemaError as e:
        raise SchemaValidationError(f"Invalid schema for '{name}': {e.message}") from e


def entry_schema(entry: "Entry") -> Dict[str, Any]:
    schema = dict(entry.schema or {})
    schema["default"] = entry.default
    if entry.description:
        schema["description"] = entry.description
    return schema


def section_schema(section: "Section") -> Dict[str, Any]:
    """
    Schema for one section: its entries and, recursively, its subsections.

    Undeclared keys are rejected. Declared keys are all optional, so a
    parameter file may set any subset of them.
    """
    properties: Dict[str, Any] = {}
    for name, entry in section.entries.items():
        properties[name] = entry_schema(entry)
    for name, subsection in section.subsections.items():
        properties[name] = section_schema(subsection)
    return {
        "type": "object",
        "properties": properties,
        "additionalProperties": False,
    }


def document_schema(root: "Section", title: str = "parameters") -> Dict[str, Any]:
    """Top-level schema for a complete parameter document."""
    schema = section_schema(root)
    schema["$schema"] = DRAFT7
    schema["title"] = title
    return schema
