import os
import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

def test_pyproject_readme_and_packages_exist():
    tomllib = pytest.importorskip("tomllib")
    with open(os.path.join(ROOT, "pyproject.toml"), "rb") as f:
        meta = tomllib.load(f)
    readme = meta["project"]["readme"]
    assert readme == "README.md"
    assert os.path.exists(os.path.join(ROOT, readme))
    for pkg in meta["tool"]["setuptools"]["packages"]:
        assert os.path.exists(os.path.join(ROOT, pkg, "__init__.py"))
