import pytest

from code_cartographer.matching import is_match, normalize_globs


@pytest.mark.unit
def test_normalize_globs_strips_and_normalizes() -> None:
    globs = ["  ./src/**/*.py ", "\\tests\\*.py", ""]

    assert normalize_globs(globs) == ["src/**/*.py", "/tests/*.py"]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("rel", "patterns", "expected"),
    [
        ("src/a.ts", ["**/*"], True),
        (".github/workflows/ci.yml", ["**/*"], True),
        ("src/a.ts", ["src/*.ts"], True),
        ("src/lib/b.ts", ["src/*.ts"], False),
        ("src/lib/b.ts", ["src/**/*.ts"], True),
        ("src/b.ts", ["src/**/*.ts"], True),
        ("node_modules/pkg/index.js", ["node_modules/**"], True),
        ("vendor/app.min.js", ["**/*.min.js"], True),
        ("app.min.js", ["**/*.min.js"], True),
        ("a.ts", ["**/*.TS"], False),
        ("a.ts", [], False),
    ],
)
def test_is_match_glob_semantics(rel: str, patterns: list[str], expected: bool) -> None:  # noqa: FBT001
    assert is_match(rel, patterns) is expected


@pytest.mark.unit
def test_is_match_dot_files_toggle() -> None:
    assert is_match(".env", ["*"]) is True
    assert is_match(".env", ["*"], dot_files=False) is False
    assert is_match("config/.env", ["config/*"], dot_files=False) is False


@pytest.mark.unit
def test_is_match_normalizes_windows_separators() -> None:
    assert is_match("src\\a.ts", ["src/*.ts"]) is True
