import ast
from pathlib import Path


DB_SESSION_METHODS = {
    "add",
    "add_all",
    "commit",
    "delete",
    "execute",
    "flush",
    "get",
    "query",
    "refresh",
    "scalar",
    "scalars",
}

BACKEND_ROOT = Path(__file__).resolve().parents[1]
ROUTES_DIR = BACKEND_ROOT / "edugate" / "interfaces" / "api" / "v1" / "routes"
MODELS_MODULE = "edugate.infrastructure.db.models"


def _test_files() -> list[Path]:
    root = Path(__file__).resolve().parent
    return sorted(
        path
        for path in root.rglob("test_*.py")
        if "helpers" not in path.parts and path.name != "test_compliance_rules.py"
    )


def _db_session_calls_in_test_functions(file_path: Path) -> list[tuple[str, int]]:
    tree = ast.parse(file_path.read_text(encoding="utf-8"))
    violations: list[tuple[str, int]] = []
    for node in tree.body:
        if not isinstance(node, ast.FunctionDef) or not node.name.startswith("test_"):
            continue
        for subnode in ast.walk(node):
            if not isinstance(subnode, ast.Call):
                continue
            func = subnode.func
            if (
                isinstance(func, ast.Attribute)
                and isinstance(func.value, ast.Name)
                and func.value.id == "db_session"
                and func.attr in DB_SESSION_METHODS
            ):
                violations.append((node.name, subnode.lineno))
    return violations


def _model_imports(file_path: Path) -> list[int]:
    tree = ast.parse(file_path.read_text(encoding="utf-8"))
    lines: list[int] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module == MODELS_MODULE:
            lines.append(node.lineno)
        elif isinstance(node, ast.Import) and any(alias.name == MODELS_MODULE for alias in node.names):
            lines.append(node.lineno)
    return lines


def test_no_direct_db_session_calls_inside_test_functions():
    """
    Validate test methods avoid direct db_session operations.

    1. Discover all backend test files excluding helpers.
    2. Parse each file AST and inspect only test_* function bodies.
    3. Detect any direct db_session DB operation call usage.
    4. Validate no violations exist and report actionable locations otherwise.
    """
    errors: list[str] = []
    for file_path in _test_files():
        for test_name, line in _db_session_calls_in_test_functions(file_path):
            errors.append(f"{file_path.relative_to(Path(__file__).resolve().parent)}:{line} in {test_name}")
    assert not errors, "Direct db_session calls found in test methods:\n" + "\n".join(errors)


def test_routes_never_query_models_directly():
    """
    Validate every route reaches tenant data through the application services.

    1. Discover all route modules.
    2. Parse each module AST and collect ORM model imports.
    3. Validate no route imports the models module.
    """
    errors = [
        f"{path.name}:{line}"
        for path in sorted(ROUTES_DIR.glob("*.py"))
        for line in _model_imports(path)
    ]
    assert not errors, "Routes importing ORM models directly:\n" + "\n".join(errors)
