from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from code_cartographer import cli


@pytest.mark.integration
def test_main_passes_selection_and_type_to_the_run(
    tmp_path: Path,
    mocker: MockerFixture,
) -> None:
    repo = tmp_path / "repo"
    file_path = repo / "src" / "app.ts"
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text("export {};\n", encoding="utf-8")
    output = tmp_path / "out.csv"
    document = mocker.spy(cli.Cartographer, "document")

    exit_code = cli.main(
        [
            "--repo",
            str(repo),
            "--output",
            str(output),
            "--type",
            "documentation",
            "--include-item",
            "src/app.ts",
            "--log-file",
            str(tmp_path / "run.log"),
        ],
    )

    assert exit_code == 0
    kwargs = document.call_args.kwargs
    assert kwargs["output_format"] == "csv"
    assert kwargs["documentation_type"] == "documentation"
    assert kwargs["include_items"] == ["src/app.ts"]
    assert output.read_text(encoding="utf-8").splitlines()[0] == "key,value"


@pytest.mark.integration
def test_main_ignore_pattern_and_size_flags(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    (repo / "src").mkdir(parents=True)
    (repo / "src" / "keep.ts").write_text("k", encoding="utf-8")
    (repo / "src" / "drop.snap").write_text("d", encoding="utf-8")
    (repo / "src" / "large.ts").write_text("l" * 50, encoding="utf-8")
    output = tmp_path / "doc.txt"

    exit_code = cli.main(
        [
            "generate",
            "--repo",
            str(repo),
            "--output",
            str(output),
            "--ignore-pattern",
            "**/*.snap",
            "--max-file-size",
            "10",
            "--log-file",
            str(tmp_path / "run.log"),
        ],
    )

    assert exit_code == 0
    text = output.read_text(encoding="utf-8")
    assert "## File: src/keep.ts" in text
    assert "drop.snap" not in text
    assert "## File: src/large.ts" not in text
    assert "large.ts" in text
