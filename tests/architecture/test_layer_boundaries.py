"""
Import-boundary enforcement.

1. Engine purity      -- logistics_engines/** may not import the DB, ORM,
                         config, modules or services layers.
2. Engine no-impure   -- logistics_engines/** may not read the wall clock
                         or the environment.
3. Kernel direction   -- logistics_kernel/** may not import services or
                         engines; only the DB bootstrap may reach the ORM
                         models in logistics_modules.
4. Module direction   -- logistics_modules/** may not import services.

All scanning is done via AST -- these tests are read-only.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[Path]:
    return sorted((ROOT / package).rglob("*.py"))


def _parse(filepath: Path) -> ast.AST | None:
    try:
        return ast.parse(filepath.read_text(), filename=str(filepath))
    except (SyntaxError, UnicodeDecodeError):
        return None


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    tree = _parse(filepath)
    if tree is None:
        return []
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _extract_attribute_calls(filepath: Path) -> list[tuple[int, str]]:
    """(line_number, 'receiver.attr') for two-level attribute references."""
    tree = _parse(filepath)
    if tree is None:
        return []
    return [
        (node.lineno, f"{node.value.id}.{node.attr}")
        for node in ast.walk(tree)
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name)
    ]


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _violations(package: str, forbidden: tuple[str, ...], allowed_files=()) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        rel = filepath.relative_to(ROOT).as_posix()
        if rel in allowed_files:
            continue
        for lineno, module in _extract_imports(filepath):
            if _matches_any(module, forbidden):
                found.append(f"  {rel}:{lineno} imports '{module}'")
    return found


class TestEnginePurity:
    """logistics_engines/** is pure computation."""

    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "sqlite3",
        "yaml",
        "logistics_kernel.db",
        "logistics_config",
        "logistics_modules",
        "logistics_services",
    )

    def test_engine_files_have_no_forbidden_imports(self):
        violations = _violations("logistics_engines", self.FORBIDDEN_PREFIXES)
        assert not violations, (
            "Engine purity violation:\n" + "\n".join(violations)
        )


class TestEngineNoImpureFunctions:
    """Engines take dates and clocks as arguments."""

    IMPURE_CALLS = (
        "datetime.now",
        "datetime.utcnow",
        "datetime.today",
        "date.today",
        "os.environ",
        "os.getenv",
    )

    def test_no_wall_clock_or_environment(self):
        violations: list[str] = []
        for filepath in _python_files("logistics_engines"):
            for lineno, call in _extract_attribute_calls(filepath):
                if call in self.IMPURE_CALLS:
                    violations.append(f"  {filepath.name}:{lineno} uses {call}")
        assert not violations, "\n".join(violations)


class TestDependencyDirection:

    def test_kernel_does_not_import_upper_layers(self):
        violations = _violations(
            "logistics_kernel",
            ("logistics_services", "logistics_engines", "logistics_config"),
        )
        assert not violations, "\n".join(violations)

    def test_only_db_bootstrap_reaches_modules(self):
        violations = _violations(
            "logistics_kernel",
            ("logistics_modules",),
            allowed_files=("logistics_kernel/db/engine.py",),
        )
        assert not violations, "\n".join(violations)

    def test_modules_do_not_import_services(self):
        violations = _violations("logistics_modules", ("logistics_services",))
        assert not violations, "\n".join(violations)

    def test_config_is_a_leaf(self):
        violations = _violations(
            "logistics_config",
            ("logistics_engines", "logistics_modules", "logistics_services", "sqlalchemy"),
        )
        assert not violations, "\n".join(violations)
