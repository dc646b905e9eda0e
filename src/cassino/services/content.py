from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from cassino.engine.errors import MalformedActionError
from cassino.engine.state import RulesConfig


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def _schema_errors(instance: object, schema: object) -> list[str]:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    lines = []
    for err in errors[:10]:
        loc = "/".join(str(p) for p in err.absolute_path)
        lines.append(f"- {loc}: {err.message}")
    return lines


def validate_json(instance: object, schema: object, *, context: str) -> None:
    lines = _schema_errors(instance, schema)
    if lines:
        raise ContentError("\n".join([f"Schema validation failed for {context}:", *lines]))


def _parse_rules(raw: Mapping[str, object]) -> RulesConfig:
    scoring = raw.get("scoring", {})
    if not isinstance(scoring, dict):
        raise ContentError("rules.scoring must be an object")
    fields: dict[str, object] = {k: v for k, v in raw.items() if k not in ("scoring", "version")}
    fields.update(scoring)
    try:
        return RulesConfig(**fields)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ContentError(f"Invalid rules: {e}") from e


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir
        self._action_schema: object | None = None

    def load_rules(self, path: Path | None = None) -> RulesConfig:
        rules_path = path or self._data_dir / "rules.json"
        raw = _load_json(rules_path)
        schema = _load_json(self._schema_dir / "rules.schema.json")
        validate_json(raw, schema, context=str(rules_path))
        if not isinstance(raw, dict):
            raise ContentError("rules.json must be an object")
        return _parse_rules(raw)

    def validate_action(self, envelope: object) -> None:
        """Check an inbound action envelope against the action schema.

        Raises :class:`MalformedActionError` so callers can turn it into a
        ``MalformedAction`` rejection.
        """
        if self._action_schema is None:
            self._action_schema = _load_json(self._schema_dir / "action.schema.json")
        lines = _schema_errors(envelope, self._action_schema)
        if lines:
            raise MalformedActionError("Malformed action:\n" + "\n".join(lines))

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_rules()
        _ = _load_json(self._schema_dir / "action.schema.json")
