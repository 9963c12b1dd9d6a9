"""
schemas/__init__.py

JSON Schema definitions and validation utilities for persisted projects.

The document schema checks the envelope and project header only; each
entry of ``objects`` is validated separately with ``validate_object`` so one
bad object can be dropped without rejecting the whole file.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator

# Schema file paths
SCHEMA_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "project_schema.json")

# Cached schema and validators
_project_schema: Optional[Dict] = None
_document_validator: Optional[Draft202012Validator] = None
_object_validator: Optional[Draft202012Validator] = None


def get_project_schema() -> Dict:
    """Load and return the persisted project schema."""
    global _project_schema
    if _project_schema is None:
        with open(PROJECT_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _project_schema = json.load(f)
    return _project_schema


def _definition_schema(name: str) -> Dict[str, Any]:
    """Standalone schema for one ``$defs`` entry, keeping its references."""
    schema = get_project_schema()
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$defs": schema.get("$defs", {}),
        "$ref": f"#/$defs/{name}",
    }


def _get_document_validator() -> Draft202012Validator:
    global _document_validator
    if _document_validator is None:
        _document_validator = Draft202012Validator(get_project_schema())
    return _document_validator


def _get_object_validator() -> Draft202012Validator:
    global _object_validator
    if _object_validator is None:
        _object_validator = Draft202012Validator(_definition_schema("object"))
    return _object_validator


def _format_errors(errors) -> List[str]:
    messages = []
    for error in errors:
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        messages.append(f"{path}: {error.message}")
    return messages


def validate_object(obj: Any) -> Tuple[bool, List[str]]:
    """
    Validate a single serialised object.

    Args:
        obj: One entry of the project's ``objects`` list.

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    errors = list(_get_object_validator().iter_errors(obj))
    if not errors:
        return True, []
    return False, _format_errors(errors)


def check_document(data: Any) -> None:
    """Raise ``jsonschema.ValidationError`` for the first envelope problem."""
    _get_document_validator().validate(data)
