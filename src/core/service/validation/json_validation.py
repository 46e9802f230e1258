"""
JSON payload checks for app data and AI output
"""

import json
from typing import Any, Dict, Iterator, List, Optional, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from referencing import Registry
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT7

from src.core.exceptions.base import ValidationError

MAX_SCHEMA_ERROR_LENGTH = 200
UNRESOLVABLE_REF_MESSAGE = "Template JSON Schema has an unresolvable $ref"

# Schemas come from users; refs are resolved inside the schema only, never fetched
_LOCAL_ONLY = Registry()


class JsonValidationError(ValidationError):
    pass


def validate_json(json_string: str, allow_empty: bool = False) -> Union[Dict[str, Any], List[Any]]:
    """
    Parse ``json_string`` and require an object or array

    Raises:
        JsonValidationError: on malformed JSON, scalars, or empty containers
    """
    if not json_string or not isinstance(json_string, str):
        raise JsonValidationError("JSON string is required")

    try:
        parsed = json.loads(json_string)
    except (TypeError, ValueError):
        raise JsonValidationError("Invalid JSON format")

    if not isinstance(parsed, (dict, list)):
        raise JsonValidationError("Invalid JSON: must be an object or array")

    if not allow_empty and len(parsed) == 0:
        raise JsonValidationError("Empty JSON objects/arrays are not allowed")

    return parsed


def schema_errors(schema: Any, data: Any) -> List[str]:
    """
    Messages for every way ``data`` violates ``schema`` (Draft 7)

    A schema that is itself invalid yields a single error.
    """
    if not is_valid_schema(schema):
        return ["Template JSON data is not a valid JSON Schema"]
    if find_unresolvable_ref(schema) is not None:
        return [UNRESOLVABLE_REF_MESSAGE]

    validator = Draft7Validator(schema, registry=_LOCAL_ONLY)
    try:
        errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    except Unresolvable:
        return [UNRESOLVABLE_REF_MESSAGE]
    return [error.message for error in errors]


def validate_input_data(schema: Any, data: Any) -> None:
    """
    Raises:
        JsonValidationError: with ``Invalid JSON data: <first error>``
    """
    errors = schema_errors(schema, data)
    if errors:
        message = " ".join(errors[0].split())[:MAX_SCHEMA_ERROR_LENGTH]
        raise JsonValidationError(f"Invalid JSON data: {message}", details={"errors": errors[:10]})


def is_valid_schema(schema: Any) -> bool:
    if not isinstance(schema, (dict, bool)):
        return False
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError:
        return False
    return True


def _iter_refs(node: Any) -> Iterator[str]:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield ref
        for value in node.values():
            yield from _iter_refs(value)
    elif isinstance(node, list):
        for item in node:
            yield from _iter_refs(item)


def find_unresolvable_ref(schema: Any) -> Optional[str]:
    """First ``$ref`` in ``schema`` that does not point inside the schema itself"""
    if not isinstance(schema, dict):
        return None
    resolver = _LOCAL_ONLY.with_resource("", DRAFT7.create_resource(schema)).resolver()
    for ref in _iter_refs(schema):
        try:
            resolver.lookup(ref)
        except Unresolvable:
            return ref
    return None
