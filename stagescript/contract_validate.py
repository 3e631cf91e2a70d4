from typing import List

import jsonschema

from .schema_loader import load_schema

DOCUMENT_SCHEMA = "ScriptDocument.v1.json"


def validate_document_contract(data) -> None:
    """Validate an export document against ScriptDocument.v1.json.

    Raises jsonschema.ValidationError if non-conformant.
    """
    jsonschema.validate(data, load_schema(DOCUMENT_SCHEMA))


def document_contract_errors(data) -> List[str]:
    """Every contract violation as ``<path>: <message>``; empty list = valid."""
    schema = load_schema(DOCUMENT_SCHEMA)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator = validator_cls(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: e.json_path)
    return [f"{e.json_path}: {e.message}" for e in errors]
