from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

import pytest

from study_tutor.core import logging as core_logging


@pytest.fixture
def release_handlers():
    names: list[str] = []
    yield names.append
    for name in names:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_configure_logger_writes_json(tmp_path, release_handlers):
    release_handlers("study_tutor.test_json")
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        "study_tutor.test_json", log_dir=log_dir, level="INFO"
    )

    logger.info("quiz generated", extra={"questions": 4, "subject": "과학"})
    logger.debug("hidden at INFO")

    class _Helper:
        def __repr__(self):  # noqa: D401
            return "helper"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={
                "detail": {"items": [Path(log_dir), 1], "ok": True},
                "obj": _Helper(),
            },
        )
    for handler in logger.handlers:
        handler.flush()

    assert log_path == log_dir / "test_json.log"
    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["message"] == "quiz generated"
    assert first["level"] == "INFO"
    assert first["extra"] == {"questions": 4, "subject": "과학"}

    last = json.loads(lines[-1])
    assert "ValueError: boom" in last["exception"]
    assert last["extra"]["obj"] == "helper"
    assert last["extra"]["detail"]["items"] == [str(log_dir), 1]


def test_verbose_logs_debug_and_adds_console_handler(
    tmp_path, release_handlers
):
    name = "study_tutor.test_verbose"
    release_handlers(name)

    logger, _ = core_logging.configure_logger(
        name, log_dir=tmp_path / "logs", verbose=True
    )
    again, _ = core_logging.configure_logger(
        name, log_dir=tmp_path / "logs", verbose=True
    )

    assert again is logger
    console = [
        handler
        for handler in logger.handlers
        if getattr(handler, "_study_tutor_console", False)
    ]
    files = [
        handler
        for handler in logger.handlers
        if getattr(handler, "_study_tutor_file", False)
    ]
    assert len(console) == 1
    assert len(files) == 1
    assert files[0].level == logging.DEBUG
    assert logger.propagate is False

    core_logging.configure_logger(
        name, log_dir=tmp_path / "logs", verbose=False
    )
    assert not any(
        getattr(handler, "_study_tutor_console", False)
        for handler in logger.handlers
    )


def test_unwritable_log_dir_falls_back_to_tempdir(
    tmp_path, monkeypatch, release_handlers
):
    release_handlers("study_tutor.test_blocked")
    target = tmp_path / "blocked"
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path / "t"))
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)

    _, log_path = core_logging.configure_logger(
        "study_tutor.test_blocked", log_dir=target
    )

    assert log_path.parent == tmp_path / "t" / "study-tutor-logs"
    assert log_path.exists()


def test_no_writable_directory_raises(
    tmp_path, monkeypatch, release_handlers
):
    release_handlers("study_tutor.test_denied")

    def deny(path, *args, **kwargs):  # noqa: ANN001
        raise PermissionError("denied")

    monkeypatch.setattr(core_logging, "RotatingFileHandler", deny)

    with pytest.raises(PermissionError):
        core_logging.configure_logger(
            "study_tutor.test_denied", log_dir=tmp_path / "logs"
        )


def test_coerce_level_defaults():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level("warning") == logging.WARNING


def test_command_fields_are_stamped_and_replaced(tmp_path, release_handlers):
    name = "study_tutor.test_fields"
    release_handlers(name)
    log_dir = tmp_path / "logs"

    logger, log_path = core_logging.configure_logger(
        name, log_dir=log_dir, fields={"command": "quiz"}
    )
    logger.info("first")
    core_logging.configure_logger(
        name, log_dir=log_dir, fields={"command": "study"}
    )
    logger.info("second", extra={"command": "override"})
    for handler in logger.handlers:
        handler.flush()

    records = [
        json.loads(line)
        for line in log_path.read_text(encoding="utf-8").splitlines()
    ]
    assert [r["extra"]["command"] for r in records] == ["quiz", "override"]
    (handler,) = [
        h for h in logger.handlers if getattr(h, "_study_tutor_file", False)
    ]
    stamps = [
        f for f in handler.filters
        if isinstance(f, core_logging.CommandFields)
    ]
    assert len(stamps) == 1
    assert stamps[0].fields == {"command": "study"}
