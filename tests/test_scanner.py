from style_scanner.models import Identifier
from style_scanner.scanners.csharp import scan
from style_scanner.scanners.lexer import ScanError


PLAYER_SOURCE = """using UnityEngine;

namespace Game
{
    public class PlayerController : MonoBehaviour
    {
        private const int MAX_HEALTH = 100;
        [SerializeField] private float _speed = 5f;
        public int score;
        private Rigidbody _body;

        public int Health { get; private set; }

        private void Update()
        {
            var body = GetComponent<Rigidbody>();
            if (_body == null)
            {
                return;
            }
            transform.Translate(Vector3.forward * 3);
        }
    }

    public enum PlayerState
    {
        Idle,
        Running = 2,
    }
}
"""


def _summary(source: str) -> list[tuple[str, str, int]]:
    return [(item.name, item.kind, item.line) for item in scan(source)]


def test_scan_reports_declarations_and_constructs_in_source_order():
    assert _summary(PLAYER_SOURCE) == [
        ("{", "brace", 4),
        ("PlayerController", "class", 5),
        ("{", "brace", 6),
        ("MAX_HEALTH", "constant", 7),
        ("_speed", "field", 8),
        ("score", "field", 9),
        ("_body", "field", 10),
        ("Health", "property", 12),
        ("Update", "method", 14),
        ("{", "brace", 15),
        ("GetComponent", "frame-call", 16),
        ("_body == null", "null-check", 17),
        ("{", "brace", 18),
        ("transform.Translate", "frame-call", 21),
        ("3", "number", 21),
        ("PlayerState", "enum", 25),
        ("{", "brace", 26),
        ("Idle", "enum-member", 27),
        ("Running", "enum-member", 28),
    ]


def test_scan_is_idempotent():
    first = list(scan(PLAYER_SOURCE))
    second = list(scan(PLAYER_SOURCE))

    assert first == second


def test_modifiers_include_implicit_access():
    source = (
        "class Enemy\n"
        "{\n"
        "    int hitPoints;\n"
        "    public static int count;\n"
        "    void Die()\n"
        "    {\n"
        "    }\n"
        "}\n"
    )
    found = {item.name: item.modifiers for item in scan(source) if item.kind != "brace"}

    assert found["Enemy"] == frozenset({"internal"})
    assert found["hitPoints"] == frozenset({"private"})
    assert found["count"] == frozenset({"public", "static"})
    assert found["Die"] == frozenset({"private"})


def test_interface_members_are_public():
    source = (
        "public interface IDamageable\n"
        "{\n"
        "    void TakeDamage(int amount);\n"
        "    int Health { get; }\n"
        "}\n"
    )
    items = [item for item in scan(source) if item.kind != "brace"]

    assert [(item.name, item.kind) for item in items] == [
        ("IDamageable", "interface"),
        ("TakeDamage", "method"),
        ("Health", "property"),
    ]
    assert "public" in items[1].modifiers


def test_k_and_r_braces_report_the_source_line():
    source = (
        "public class Spawner : MonoBehaviour {\n"
        "    void Start() {\n"
        "        if (ready) {\n"
        "        } else {\n"
        "        }\n"
        "    }\n"
        "}\n"
    )
    braces = [(item.name, item.line) for item in scan(source) if item.kind == "brace"]

    assert braces == [
        ("public class Spawner : MonoBehaviour {", 1),
        ("void Start() {", 2),
        ("if (ready) {", 3),
        ("} else {", 4),
    ]


def test_initializer_lambda_and_single_line_accessor_braces_are_not_blocks():
    source = (
        "class Inventory\n"
        "{\n"
        "    private int[] _slots = { 1, 2, 3 };\n"
        "    public int Count { get { return _slots.Length; } }\n"
        "    private System.Action _onChange = () => { Refresh(); };\n"
        "    void Awake()\n"
        "    {\n"
        "        var list = new List<int> { 4 };\n"
        "        button.onClick.AddListener(() => {\n"
        "            Refresh();\n"
        "        });\n"
        "    }\n"
        "}\n"
    )
    items = list(scan(source))
    braces = [item.line for item in items if item.kind == "brace"]
    names = [(item.name, item.kind) for item in items if item.kind not in ("brace", "number")]

    assert braces == [2, 7]
    assert names == [
        ("Inventory", "class"),
        ("_slots", "field"),
        ("Count", "property"),
        ("_onChange", "field"),
        ("Awake", "method"),
    ]


def test_fields_events_delegates_and_expression_members():
    source = (
        "public delegate void Died(int score);\n"
        "class Unit\n"
        "{\n"
        "    private int _a, b = 2, _c;\n"
        "    private Dictionary<string, int> _lookup;\n"
        "    private (int x, int y) _cell;\n"
        "    public event System.Action OnDied;\n"
        "    public bool IsDead => _health <= 0;\n"
        "    public int Twice() => _a * 2;\n"
        "    public Unit() { }\n"
        "    ~Unit() { }\n"
        "    public T Get<T>() where T : Component\n"
        "    {\n"
        "        return default;\n"
        "    }\n"
        "}\n"
    )
    names = [(item.name, item.kind) for item in scan(source) if item.kind not in ("brace", "number")]

    assert names == [
        ("Died", "delegate"),
        ("Unit", "class"),
        ("_a", "field"),
        ("b", "field"),
        ("_c", "field"),
        ("_lookup", "field"),
        ("_cell", "field"),
        ("OnDied", "event"),
        ("IsDead", "property"),
        ("Twice", "method"),
        ("Get", "method"),
    ]


def test_local_constants_and_magic_numbers():
    source = (
        "class Mover\n"
        "{\n"
        "    void Move()\n"
        "    {\n"
        "        const float maxSpeed = 12.5f;\n"
        "        for (int i = 0; i < 10; i++)\n"
        "        {\n"
        "            Step(i * 1.0f, -1);\n"
        "        }\n"
        "    }\n"
        "}\n"
    )
    items = [(item.name, item.kind) for item in scan(source) if item.kind in ("constant", "number")]

    assert items == [
        ("maxSpeed", "constant"),
        ("0", "number"),
        ("10", "number"),
        ("1.0f", "number"),
        ("1", "number"),
    ]


def test_null_check_forms_are_normalized():
    source = (
        "class Targeting\n"
        "{\n"
        "    void Start()\n"
        "    {\n"
        "        if (target?.gameObject != null) { }\n"
        "        var rb = _rb ?? GetComponent<Rigidbody>();\n"
        "        if (enemy is null) { }\n"
        "        if (enemy is not null) { }\n"
        "        if (null == this.owner) { }\n"
        "        _cache ??= FindObjectOfType<Cache>();\n"
        "        if (GetComponent<Collider>() == null) { }\n"
        "    }\n"
        "}\n"
    )
    checks = [item.name for item in scan(source) if item.kind == "null-check"]

    assert checks == [
        "target?.gameObject",
        "target?.gameObject != null",
        "_rb ?? GetComponent",
        "enemy is null",
        "enemy is not null",
        "null == this.owner",
        "_cache ??= FindObjectOfType",
        "GetComponent<Collider>() == null",
    ]


def test_frame_calls_only_inside_per_frame_methods():
    source = (
        "class Follow : MonoBehaviour\n"
        "{\n"
        "    void Start()\n"
        "    {\n"
        "        _target = GameObject.Find(\"Player\");\n"
        "    }\n"
        "    void LateUpdate()\n"
        "    {\n"
        "        var cam = Camera.main;\n"
        "        var pos = new Vector3(0, 1, 0);\n"
        "        if (ready)\n"
        "        {\n"
        "            _target = GameObject.Find(\"Player\");\n"
        "        }\n"
        "    }\n"
        "}\n"
    )
    calls = [(item.name, item.line) for item in scan(source) if item.kind == "frame-call"]

    assert calls == [("Camera.main", 9), ("GameObject.Find", 13)]


def test_malformed_input_yields_partial_results_and_diagnostics():
    source = (
        "}\n"
        "class Broken\n"
        "{\n"
        '    string s = "unterminated;\n'
        "    void Run()\n"
        "    {\n"
    )
    diagnostics: list[ScanError] = []
    items = list(scan(source, diagnostics=diagnostics))

    assert Identifier("Broken", "class", 2, frozenset({"internal"})) in items
    assert ("Run", "method") in [(item.name, item.kind) for item in items]
    assert [(error.message, error.line) for error in diagnostics] == [
        ("unbalanced closing brace", 1),
        ("unterminated string literal", 4),
        ("unexpected end of input with 2 unclosed block(s)", 6),
    ]


def test_scan_without_diagnostics_list_does_not_raise():
    assert list(scan("}}}")) == []


def test_escaped_line_break_in_string_keeps_later_lines_aligned():
    source = (
        "class Holder\n"
        "{\n"
        '    object s = "abc\\\n'
        '";\n'
        "    private int health;\n"
        "}\n"
    )
    diagnostics: list[ScanError] = []
    items = [(item.name, item.kind, item.line) for item in scan(source, diagnostics=diagnostics)]

    assert ("health", "field", 5) in items
    assert [(error.message, error.line) for error in diagnostics] == [
        ("unterminated string literal", 3),
        ("unterminated string literal", 4),
    ]


def test_case_labels_and_switch_arm_patterns_are_not_magic_numbers():
    source = (
        "class Picker\n"
        "{\n"
        "    int Pick(int x)\n"
        "    {\n"
        "        switch (x)\n"
        "        {\n"
        "            case 5:\n"
        "                return 7;\n"
        "            case (2):\n"
        "                break;\n"
        "        }\n"
        "        var y = x switch { 2 => 3, > 10 => 4, _ => 0 };\n"
        "        return y;\n"
        "    }\n"
        "}\n"
    )
    numbers = [(item.name, item.line) for item in scan(source) if item.kind == "number"]

    assert numbers == [("7", 8), ("3", 12), ("4", 12), ("0", 12)]
