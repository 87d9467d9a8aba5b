import logging

from shared.logging.logging_setup import ColorLogger, ColoredFormatter, TimezoneFormatter, get_log_level


def _record(level: int, msg: str, *args, **attrs) -> logging.LogRecord:
    record = logging.LogRecord("sovereign_explorer", level, __file__, 1, msg, args, None)
    record.__dict__.update(attrs)
    return record


def test_log_level_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    assert get_log_level() == logging.DEBUG
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert get_log_level() == logging.INFO


def test_warnings_are_marked_without_touching_the_record():
    formatter = TimezoneFormatter("UTC", "%(levelname)s %(message)s")
    record = _record(logging.WARNING, "Folder %s has a cyclic parent chain", "f1")
    assert formatter.format(record) == "WARNING ⚠️ Folder f1 has a cyclic parent chain"
    assert record.msg == "Folder %s has a cyclic parent chain"


def test_color_is_applied_only_when_named():
    formatter = ColoredFormatter("UTC", "%(message)s")
    assert formatter.format(_record(logging.INFO, "ready", color="green")) == "\033[32mready\033[0m"
    assert formatter.format(_record(logging.INFO, "ready")) == "ready"


def test_color_logger_passes_color_as_extra(caplog):
    logger = ColorLogger(logging.getLogger("sovereign_explorer.tests.color"))
    with caplog.at_level(logging.INFO, logger="sovereign_explorer.tests.color"):
        logger.info("Vault refreshed: %d documents", 3, color="cyan")
        logger.debug("hidden")
    assert [r.getMessage() for r in caplog.records] == ["Vault refreshed: 3 documents"]
    assert caplog.records[0].color == "cyan"
