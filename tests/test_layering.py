"""
tests/test_layering.py
Enforce architectural layering:
  utils      → may NOT import any project package
  core       → may NOT import database, dashboard, reporting
  database   → may NOT import core, dashboard, reporting
  reporting  → may NOT import core, dashboard, database
  dashboard  → may import everything (outermost layer)

Run: pytest tests/test_layering.py -v
"""

import sys, os, ast
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))


def get_imports(filepath: Path) -> list[str]:
    """Extract all imported module names from a Python file."""
    try:
        tree = ast.parse(filepath.read_text(encoding="utf-8"))
    except SyntaxError:
        return []
    imports = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.append(alias.name)
        elif isinstance(node, ast.ImportFrom):
            if node.module and node.level == 0:
                imports.append(node.module)
    return imports


def all_py_files(pkg_dir: Path):
    return list(pkg_dir.rglob("*.py"))


FORBIDDEN = {
    "utils":     {"core", "database", "dashboard", "reporting"},
    "core":      {"database", "dashboard", "reporting"},
    "database":  {"core", "dashboard", "reporting"},
    "reporting": {"core", "dashboard", "database"},
}


class TestLayering:
    def _check(self, package: str, forbidden: set[str]):
        pkg_dir = ROOT / package
        assert pkg_dir.is_dir(), f"package {package!r} missing"
        for pyfile in all_py_files(pkg_dir):
            imports = get_imports(pyfile)
            for imp in imports:
                top = imp.split(".")[0]
                assert top not in forbidden, (
                    f"LAYERING VIOLATION in {pyfile.relative_to(ROOT)}: "
                    f"'{package}' imports '{top}' — "
                    f"forbidden packages: {forbidden}"
                )

    @pytest.mark.parametrize("package", sorted(FORBIDDEN))
    def test_layer_rules(self, package):
        self._check(package, FORBIDDEN[package])

    def test_core_does_not_import_flask(self):
        self._check("core", {"flask", "werkzeug", "yaml", "reportlab"})

    def test_dashboard_is_the_only_flask_user(self):
        for package in ("core", "database", "reporting", "utils"):
            self._check(package, {"flask"})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
