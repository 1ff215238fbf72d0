from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from style_scanner.models import IDENTIFIER_KINDS, SEVERITIES, Rule


logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parent / "default_rules.json"


class ConfigError(ValueError):
    pass


def load_rules(path: str | Path | None = None) -> tuple[Rule, ...]:
    """Load the active rule set.

    ``path=None`` loads the bundled defaults. A JSON list replaces the
    defaults outright; a JSON object may extend them, override rules by id
    and disable ids via its ``disabled`` list.
    """
    if path is None:
        raw = _read_json(DEFAULT_RULES_PATH)
        return _parse_rule_list(raw, source=DEFAULT_RULES_PATH)

    rules_path = Path(path)
    raw = _read_json(rules_path)

    if isinstance(raw, list):
        rules = _parse_rule_list(raw, source=rules_path)
        logger.debug("Loaded %d rules from %s", len(rules), rules_path)
        return rules

    if not isinstance(raw, dict):
        raise ConfigError(f"{rules_path}: rules file must contain a JSON list or object")

    extends_defaults = raw.get("extends_defaults", True)
    if not isinstance(extends_defaults, bool):
        raise ConfigError(f"{rules_path}: 'extends_defaults' must be true or false")

    own_raw = raw.get("rules", [])
    if not isinstance(own_raw, list):
        raise ConfigError(f"{rules_path}: 'rules' must be a list")
    own_rules = _parse_rule_list(own_raw, source=rules_path, allow_empty=extends_defaults)

    merged: dict[str, Rule] = {}
    if extends_defaults:
        for rule in load_rules():
            merged[rule.id] = rule
    for rule in own_rules:
        if rule.id in merged:
            logger.debug("Rule %s overridden by %s", rule.id, rules_path)
        merged[rule.id] = rule

    disabled = _ensure_string_list(raw.get("disabled", []), "disabled", rules_path)
    unknown = [rule_id for rule_id in disabled if rule_id not in merged]
    if unknown:
        raise ConfigError(f"{rules_path}: cannot disable unknown rules: {', '.join(unknown)}")
    for rule_id in disabled:
        del merged[rule_id]

    if not merged:
        raise ConfigError(f"{rules_path}: rule set is empty")

    logger.debug("Loaded %d rules from %s", len(merged), rules_path)
    return tuple(merged.values())


def _read_json(path: Path) -> object:
    if not path.exists():
        raise ConfigError(f"Rules file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"{path}: cannot read rules file: {exc}") from exc


def _parse_rule_list(raw: object, *, source: Path, allow_empty: bool = False) -> tuple[Rule, ...]:
    if not isinstance(raw, list):
        raise ConfigError(f"{source}: rules must be a list")
    if not raw and not allow_empty:
        raise ConfigError(f"{source}: rules file must contain a non-empty list")

    rules: list[Rule] = []
    seen: set[str] = set()
    for item in raw:
        rule = _parse_rule(item, source)
        if rule.id in seen:
            raise ConfigError(f"{source}: duplicate rule id: {rule.id}")
        seen.add(rule.id)
        rules.append(rule)

    return tuple(rules)


def _parse_rule(item: object, source: Path) -> Rule:
    if not isinstance(item, dict):
        raise ConfigError(f"{source}: each rule entry must be an object")

    missing = [key for key in ("id", "applies_to", "pattern") if key not in item]
    if missing:
        raise ConfigError(f"{source}: rule is missing keys: {', '.join(missing)}")

    rule_id = str(item["id"]).strip()
    if not rule_id:
        raise ConfigError(f"{source}: rule id must not be empty")

    applies_to = str(item["applies_to"]).strip().lower()
    if applies_to not in IDENTIFIER_KINDS:
        raise ConfigError(
            f"{source}: rule {rule_id} applies to unknown kind {applies_to!r} "
            f"(expected one of: {', '.join(IDENTIFIER_KINDS)})"
        )

    severity = str(item.get("severity", "warning")).strip().lower()
    if severity not in SEVERITIES:
        raise ConfigError(f"{source}: rule {rule_id} has unknown severity {severity!r}")

    pattern = str(item["pattern"])
    try:
        re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"{source}: rule {rule_id} has an invalid pattern: {exc}") from exc

    return Rule(
        id=rule_id,
        applies_to=applies_to,
        pattern=pattern,
        expected=str(item.get("expected") or pattern),
        severity=severity,
        description=str(item.get("description", "")),
        modifiers=tuple(_ensure_string_list(item.get("modifiers", []), "modifiers", source)),
        excluded_modifiers=tuple(
            _ensure_string_list(item.get("excluded_modifiers", []), "excluded_modifiers", source)
        ),
    )


def _ensure_string_list(value: object, key: str, source: Path) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{source}: '{key}' must be a list of strings")
    return [str(item).strip() for item in value]
