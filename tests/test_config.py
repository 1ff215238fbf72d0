import json
from pathlib import Path

import pytest

from style_scanner.checker import check
from style_scanner.config import ConfigError, load_rules
from style_scanner.scanners.csharp import scan


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_default_rules_load():
    rules = load_rules()
    ids = [rule.id for rule in rules]

    assert len(ids) == len(set(ids))
    assert "private-field-naming" in ids
    assert "constant-naming" in ids
    private_field = next(rule for rule in rules if rule.id == "private-field-naming")
    assert private_field.expected == "_camelCase"
    assert private_field.modifiers == ("private",)


def test_example_config_extends_defaults():
    root = Path(__file__).resolve().parents[1]
    rules = load_rules(root / "configs" / "rules.example.json")
    by_id = {rule.id: rule for rule in rules}

    assert "magic-number" not in by_id
    assert by_id["brace-style"].severity == "warning"
    assert by_id["private-field-naming"].excluded_modifiers == ("static",)
    assert by_id["static-field-naming"].excluded_modifiers == ("readonly",)
    assert "class-naming" in by_id
    assert len(rules) == len(load_rules())


def test_example_config_accepts_static_and_instance_field_prefixes():
    root = Path(__file__).resolve().parents[1]
    rules = load_rules(root / "configs" / "rules.example.json")
    source = (
        "class Spawner\n"
        "{\n"
        "    private static int s_count;\n"
        "    private int _health;\n"
        "    private static int _total;\n"
        "}\n"
    )

    violations = check(scan(source), rules)

    assert [(item.rule_id, item.actual_text) for item in violations] == [
        ("static-field-naming", "_total"),
    ]


def test_list_replaces_defaults(tmp_path: Path):
    path = _write(
        tmp_path / "rules.json",
        [{"id": "fields", "applies_to": "field", "pattern": "m_[a-z]+"}],
    )

    rules = load_rules(path)

    assert [rule.id for rule in rules] == ["fields"]
    assert rules[0].expected == "m_[a-z]+"
    assert rules[0].severity == "warning"


def test_object_without_defaults(tmp_path: Path):
    path = _write(
        tmp_path / "rules.json",
        {
            "extends_defaults": False,
            "rules": [{"id": "types", "applies_to": "CLASS", "pattern": "[A-Z].*", "severity": "Error"}],
        },
    )

    rules = load_rules(path)

    assert [(rule.id, rule.applies_to, rule.severity) for rule in rules] == [("types", "class", "error")]


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ([{"applies_to": "field", "pattern": "x"}], "missing keys: id"),
        ([{"id": "a", "applies_to": "variable", "pattern": "x"}], "unknown kind"),
        ([{"id": "a", "applies_to": "field", "pattern": "x", "severity": "fatal"}], "unknown severity"),
        ([{"id": "a", "applies_to": "field", "pattern": "("}], "invalid pattern"),
        (
            [
                {"id": "a", "applies_to": "field", "pattern": "x"},
                {"id": "a", "applies_to": "method", "pattern": "y"},
            ],
            "duplicate rule id",
        ),
        ([{"id": "a", "applies_to": "field", "pattern": "x", "modifiers": "private"}], "'modifiers' must be a list"),
        ([], "non-empty list"),
        ({"disabled": ["no-such-rule"]}, "cannot disable unknown rules"),
        ({"extends_defaults": "yes"}, "'extends_defaults' must be true or false"),
        ({"extends_defaults": False, "rules": []}, "non-empty list"),
        ("rules", "JSON list or object"),
    ],
)
def test_invalid_rule_files_raise_config_error(tmp_path: Path, payload, message: str):
    path = _write(tmp_path / "rules.json", payload)

    with pytest.raises(ConfigError, match=message):
        load_rules(path)


def test_disabling_every_rule_is_an_error(tmp_path: Path):
    path = _write(
        tmp_path / "rules.json",
        {
            "extends_defaults": False,
            "rules": [{"id": "only", "applies_to": "field", "pattern": "x"}],
            "disabled": ["only"],
        },
    )

    with pytest.raises(ConfigError, match="rule set is empty"):
        load_rules(path)


def test_missing_and_malformed_files(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_rules(tmp_path / "absent.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid JSON"):
        load_rules(broken)
