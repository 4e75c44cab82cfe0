"""
Dead code elimination.

Every public module-level function and every public method in the five
packages must be referenced at least once (call, attribute access, or a
name in ``__all__``) from the packages or the test suite.  Either wire an
unused helper into a consumer or remove it.

Framework hooks are called by SQLAlchemy or the logging/json machinery,
never by name from our code, so they are exempt.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent.parent
PACKAGES = ("quality_kernel", "quality_engines", "quality_modules", "quality_services", "quality_config")

FRAMEWORK_HOOKS = {
    "format",                # logging.Formatter
    "default",               # json.JSONEncoder
    "process_bind_param",    # sqlalchemy TypeDecorator
    "process_result_value",  # sqlalchemy TypeDecorator
}


def _trees(dirs) -> list[ast.AST]:
    trees = []
    for d in dirs:
        for path in sorted((ROOT / d).rglob("*.py")):
            trees.append(ast.parse(path.read_text(), filename=str(path)))
    return trees


def _public_definitions(tree: ast.AST) -> set[str]:
    """Module-level functions and methods of module-level classes."""
    names = set()
    for node in tree.body:
        if isinstance(node, ast.FunctionDef):
            names.add(node.name)
        elif isinstance(node, ast.ClassDef):
            names.update(
                item.name for item in node.body
                if isinstance(item, ast.FunctionDef)
            )
    return {n for n in names if not n.startswith("_")}


def _references(tree: ast.AST) -> set[str]:
    found = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name):
            found.add(node.id)
        elif isinstance(node, ast.Attribute):
            found.add(node.attr)
        elif isinstance(node, ast.Constant) and isinstance(node.value, str):
            found.add(node.value)
    return found


def test_every_public_callable_has_a_consumer():
    defined: set[str] = set()
    for tree in _trees(PACKAGES):
        defined |= _public_definitions(tree)

    referenced: set[str] = set()
    for tree in _trees(PACKAGES + ("tests",)):
        referenced |= _references(tree)

    unused = sorted(defined - referenced - FRAMEWORK_HOOKS)
    assert unused == [], f"Public callables nothing references: {unused}"
