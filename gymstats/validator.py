import json
import os

import jsonschema

SCHEMA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "schemas")
DATE_RANGE_SCHEMA = os.path.join(SCHEMA_DIR, "date_range_request.json")
SNAPSHOT_SCHEMA = os.path.join(SCHEMA_DIR, "snapshot.json")


class SchemaValidator:
    """Validates JSON documents against a JSON schema."""

    def __init__(self, schema_path):
        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        self._validator = jsonschema.Draft202012Validator(schema)

    def validate(self, document):
        """Validate a document against the schema.

        Returns:
            tuple: (is_valid: bool, errors: list[str])
        """
        errors = [error.message for error in self._validator.iter_errors(document)]
        return not errors, errors
