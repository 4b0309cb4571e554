import json
from pathlib import Path

import pytest

from code_cartographer import __version__, cli


def _make_repo(root: Path) -> Path:
    (root / "src").mkdir(parents=True)
    (root / "src" / "a.ts").write_text("export const a = 1;\n", encoding="utf-8")
    (root / "src" / "b.ts").write_text("export const b = 2;\n", encoding="utf-8")
    (root / "README.md").write_text("# Demo\n", encoding="utf-8")
    (root / "dist").mkdir()
    (root / "dist" / "bundle.js").write_text("bundle", encoding="utf-8")
    (root / ".gitignore").write_text("dist/\n", encoding="utf-8")
    return root


@pytest.mark.end2end
def test_end_to_end_json_export(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = _make_repo(tmp_path / "repo")
    log_file = tmp_path / "run.log"

    exit_code = cli.main(["generate", "--repo", str(repo), "--log-file", str(log_file)])

    assert exit_code == 0
    output = repo / "documentation.json"
    data = json.loads(output.read_text(encoding="utf-8"))
    assert [f["path"] for f in data["files"]] == ["README.md", "src/a.ts", "src/b.ts"]
    assert data["project_info"]["documented_files"] == 3
    captured = capsys.readouterr()
    assert "Wrote " in captured.out
    assert "documentation.json format=json files=3" in captured.out
    assert "[100%] Documentation completed!" in captured.err
    events = [json.loads(line)["event"] for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert "run_started" in events
    assert "run_finished" in events


@pytest.mark.end2end
def test_end_to_end_text_export(tmp_path: Path) -> None:
    repo = _make_repo(tmp_path / "repo")
    output = tmp_path / "export" / "doc.txt"

    exit_code = cli.main(["--repo", str(repo), "--output", str(output), "--log-file", str(tmp_path / "run.log")])

    assert exit_code == 0
    text = output.read_text(encoding="utf-8")
    assert "repo/\n├── src/\n│   ├── a.ts\n│   └── b.ts\n└── README.md\n" in text
    assert "bundle.js" not in text


@pytest.mark.end2end
def test_end_to_end_analyze(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = _make_repo(tmp_path / "repo")

    exit_code = cli.main(["analyze", "--repo", str(repo), "--log-file", str(tmp_path / "run.log")])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Total Files: 3" in out
    assert ".ts: 2 files" in out
    assert ".md: 1 files" in out
    assert "src: 2 files" in out


@pytest.mark.end2end
def test_end_to_end_init_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = _make_repo(tmp_path / "repo")

    exit_code = cli.main(["init-config", "--repo", str(repo), "--log-file", str(tmp_path / "run.log")])

    assert exit_code == 0
    config = repo / "cartographer.config.json"
    assert "Created configuration file at" in capsys.readouterr().out
    assert json.loads(config.read_text(encoding="utf-8"))["documentation"]["format"] == "json"


@pytest.mark.end2end
def test_end_to_end_write_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = _make_repo(tmp_path / "repo")
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")

    exit_code = cli.main(
        ["--repo", str(repo), "--output", str(blocker / "doc.json"), "--log-file", str(tmp_path / "run.log")],
    )

    assert exit_code == 1
    assert "error: cannot write" in capsys.readouterr().err


@pytest.mark.end2end
def test_end_to_end_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.end2end
def test_end_to_end_config_file_beats_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = _make_repo(tmp_path / "repo")
    (repo / "cartographer.config.json").write_text(
        json.dumps(
            {
                "exclude": ["cartographer.config.json"],
                "documentation": {"type": "both", "format": "csv", "outputPath": "out/doc.csv"},
            },
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("CARTOGRAPHER_FORMAT", "txt")
    monkeypatch.setenv("CARTOGRAPHER_DOCUMENTATION_TYPE", "structure")

    exit_code = cli.main(["generate", "--repo", str(repo), "--log-file", str(tmp_path / "run.log")])

    assert exit_code == 0
    rows = (repo / "out" / "doc.csv").read_text(encoding="utf-8").splitlines()
    assert rows[0] == "key,value"
    assert "documentation_type,both" in rows
    assert "output_format,csv" in rows
    assert "path,size,tokens" in rows


@pytest.mark.end2end
def test_end_to_end_invalid_environment_setting(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = _make_repo(tmp_path / "repo")
    monkeypatch.setenv("CARTOGRAPHER_DOCUMENTATION_TYPE", "everything")

    exit_code = cli.main(["generate", "--repo", str(repo), "--log-file", str(tmp_path / "run.log")])

    assert exit_code == 0
    data = json.loads((repo / "documentation.json").read_text(encoding="utf-8"))
    assert data["project_info"]["documentation_type"] == "both"
    events = [json.loads(line)["event"] for line in (tmp_path / "run.log").read_text(encoding="utf-8").splitlines()]
    assert "settings_invalid" in events
