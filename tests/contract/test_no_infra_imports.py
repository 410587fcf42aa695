import ast
import pathlib

import pytest

SRC = pathlib.Path("src")


def _imported_modules(path: pathlib.Path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module:
            yield node.module
        elif isinstance(node, ast.Import):
            yield from (alias.name for alias in node.names)


def _offenders(layer: str, forbidden):
    found = []
    for path in sorted(SRC.glob(f"**/{layer}/**/*.py")):
        for module in _imported_modules(path):
            if any(marker(module) for marker in forbidden):
                found.append(f"{path} -> {module}")
    return found


def _is_infrastructure(module: str) -> bool:
    return ".infrastructure" in module or module.startswith("infrastructure")


def _is_web(module: str) -> bool:
    return module.split(".")[0] in {"fastapi", "starlette"}


def _is_orm(module: str) -> bool:
    return module.split(".")[0] == "sqlalchemy"


def _is_api_layer(module: str) -> bool:
    return ".api" in module


@pytest.mark.parametrize(
    "layer, forbidden",
    [
        ("api", [_is_infrastructure]),
        ("domain", [_is_infrastructure, _is_web, _is_orm]),
        ("application", [_is_web, _is_api_layer]),
    ],
)
def test_layer_boundaries(layer, forbidden):
    assert _offenders(layer, forbidden) == []
