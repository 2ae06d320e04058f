"""
Architecture tests to enforce layer boundaries.

Rules enforced:
- domain/ imports only the standard library (plus dateutil for sheet dates)
- application/ imports domain/ and shared/, never infrastructure/
- shared/ imports no other layer
"""

import ast
import sys
from pathlib import Path

import pytest

SRC = Path(__file__).parent.parent.parent / "src"
LAYERS = ("domain", "application", "infrastructure", "shared")

ALLOWED_LAYER_DEPENDENCIES = {
    "domain": {"domain"},
    "application": {"application", "domain", "shared"},
    "infrastructure": set(LAYERS),
    "shared": {"shared"},
}

# Spreadsheet dates arrive in free-form text
DOMAIN_THIRD_PARTY = {"dateutil"}


def python_files(layer: str) -> list[Path]:
    return sorted(p for p in (SRC / layer).rglob("*.py") if "__pycache__" not in p.parts)


def absolute_imports(file_path: Path) -> set[str]:
    """Modules imported by a file; relative imports stay inside their package."""
    try:
        tree = ast.parse(file_path.read_text(encoding="utf-8"))
    except SyntaxError as e:
        pytest.fail(f"Failed to parse {file_path}: {e}")

    imports = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            imports.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            imports.add(node.module)
    return imports


def layer_of(module: str):
    parts = module.split(".")
    if parts[0] == "src" and len(parts) > 1:
        return parts[1] if parts[1] in LAYERS else None
    return None


def is_stdlib(module: str) -> bool:
    return module.split(".")[0] in sys.stdlib_module_names


@pytest.mark.parametrize("layer", LAYERS)
def test_layer_dependency_direction(layer):
    violations = []
    for file_path in python_files(layer):
        for module in absolute_imports(file_path):
            target = layer_of(module)
            if target and target not in ALLOWED_LAYER_DEPENDENCIES[layer]:
                violations.append(f"{file_path.relative_to(SRC)}: imports {module}")

    assert not violations, f"{layer} layer has invalid imports:\n" + "\n".join(violations)


@pytest.mark.skipif(sys.version_info < (3, 10), reason="sys.stdlib_module_names requires 3.10")
def test_domain_imports_only_standard_library():
    violations = []
    for file_path in python_files("domain"):
        for module in absolute_imports(file_path):
            if layer_of(module) == "domain" or is_stdlib(module):
                continue
            if module.split(".")[0] in DOMAIN_THIRD_PARTY:
                continue
            violations.append(f"{file_path.relative_to(SRC)}: imports {module}")

    assert not violations, "Domain layer has non-standard library imports:\n" + "\n".join(violations)


def test_infrastructure_depends_on_inner_layers():
    targets = {
        layer_of(module)
        for file_path in python_files("infrastructure")
        for module in absolute_imports(file_path)
    }

    assert {"domain", "application"} <= targets
