import json
import logging
from pathlib import Path

import pytest

from code_cartographer.logging import get_logger, setup_logging


@pytest.mark.unit
def test_forced_reconfiguration_reaches_existing_loggers(tmp_path: Path) -> None:
    first, second = tmp_path / "info.log", tmp_path / "debug.log"
    setup_logging(first, level=logging.INFO, force=True)
    log = get_logger("walker")
    log.info("before")
    log.debug("hidden")

    setup_logging(second, level=logging.DEBUG, force=True)
    log.debug("visible", path="src")

    assert [json.loads(line)["event"] for line in first.read_text(encoding="utf-8").splitlines()] == ["before"]
    record = json.loads(second.read_text(encoding="utf-8").splitlines()[-1])
    assert record["event"] == "visible"
    assert record["level"] == "debug"
    assert record["component"] == "walker"
    assert record["path"] == "src"
