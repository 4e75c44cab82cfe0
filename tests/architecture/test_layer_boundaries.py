"""
Layer boundary contract.

Dependency direction:

    quality_services -> quality_modules -> quality_engines -> quality_kernel
    quality_services -> quality_config -> quality_kernel

1. quality_kernel/** never imports an outer package.
2. quality_engines/** imports only the kernel's domain, exceptions and
   logging -- never the database layer, SQLAlchemy, or outer packages.
3. quality_modules/** never imports services, config or the database layer.
4. quality_config/** never imports services or modules.
5. Only the Clock reads the wall clock.

These tests read source code via AST -- they cannot break anything.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent.parent
WALL_CLOCK_CALLS = {("datetime", "now"), ("datetime", "utcnow"), ("date", "today")}


def _python_files(package: str) -> list[Path]:
    return sorted((ROOT / package).rglob("*.py"))


def _extract_imports(path: Path) -> list[tuple[int, str]]:
    """(line_number, module) for every import in a file."""
    tree = ast.parse(path.read_text(), filename=str(path))
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for path in _python_files(package):
        for lineno, module in _extract_imports(path):
            if any(module == p or module.startswith(f"{p}.") for p in forbidden):
                found.append(f"  {path.relative_to(ROOT)}:{lineno} imports '{module}'")
    return found


def test_packages_exist():
    for package in ("quality_kernel", "quality_engines", "quality_modules", "quality_services", "quality_config"):
        assert _python_files(package), f"{package} has no source files"


def test_kernel_has_no_upward_dependencies():
    violations = _violations(
        "quality_kernel",
        ("quality_engines", "quality_modules", "quality_services", "quality_config"),
    )
    assert not violations, "Kernel boundary violation:\n" + "\n".join(violations)


def test_engines_are_pure():
    violations = _violations(
        "quality_engines",
        (
            "sqlalchemy",
            "quality_kernel.db",
            "quality_kernel.models",
            "quality_kernel.services",
            "quality_modules",
            "quality_services",
            "quality_config",
        ),
    )
    assert not violations, "Engine purity violation:\n" + "\n".join(violations)


def test_modules_are_declarative():
    violations = _violations(
        "quality_modules",
        (
            "sqlalchemy",
            "quality_kernel.db",
            "quality_kernel.models",
            "quality_kernel.services",
            "quality_services",
            "quality_config",
        ),
    )
    assert not violations, "Module layer violation:\n" + "\n".join(violations)


def test_config_does_not_reach_into_services():
    violations = _violations("quality_config", ("quality_services", "quality_modules"))
    assert not violations, "Config layer violation:\n" + "\n".join(violations)


def test_no_wall_clock_outside_clock_module():
    """Only SystemClock (and trace timestamps) may read the wall clock."""
    allowed = {
        ROOT / "quality_kernel" / "domain" / "clock.py",
        ROOT / "quality_services" / "workflow_engine.py",
    }
    offenders = []
    for package in ("quality_kernel", "quality_engines", "quality_modules", "quality_services"):
        for path in _python_files(package):
            if path in allowed:
                continue
            tree = ast.parse(path.read_text(), filename=str(path))
            for node in ast.walk(tree):
                if (
                    isinstance(node, ast.Call)
                    and isinstance(node.func, ast.Attribute)
                    and isinstance(node.func.value, ast.Name)
                    and (node.func.value.id, node.func.attr) in WALL_CLOCK_CALLS
                ):
                    offenders.append(f"{path.relative_to(ROOT)}:{node.lineno}")
    assert not offenders, f"Wall-clock reads outside the Clock: {offenders}"
