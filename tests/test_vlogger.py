import io

import pytest

from ipamcontroller import vlogger
from ipamcontroller.vlogger import (
    LOG_CRIT,
    LOG_DEBUG,
    LOG_INFO,
    ConsoleLogger,
    Logger,
    LogLevel,
    NullLogger,
    parse_log_level,
)


class _Recorder(Logger):
    def __init__(self):
        super().__init__()
        self.messages = []
        self.closed = 0

    def critical(self, msg, *args):
        self.messages.append(msg % args if args else msg)

    def close(self):
        self.closed += 1


@pytest.fixture(autouse=True)
def _reset_loggers():
    yield
    vlogger.register_logger(vlogger.MIN_LEVEL, vlogger.MAX_LEVEL, NullLogger())
    vlogger.set_log_level(LogLevel.DEBUG)


def test_level_names():
    assert str(parse_log_level("debug")) == "debug"
    assert str(parse_log_level("Critical")) == "critical"


@pytest.mark.parametrize("level", list(LogLevel))
def test_parse_round_trip(level):
    assert parse_log_level(str(level)) is level
    assert parse_log_level(str(level).upper()) is level


def test_parse_unknown_or_empty():
    assert parse_log_level("") is None
    assert parse_log_level("verbose") is None


def test_levels_ascending():
    names = ["debug", "info", "warning", "error", "critical"]
    parsed = [parse_log_level(name) for name in names]
    assert parsed == sorted(parsed)
    assert vlogger.MIN_LEVEL is parse_log_level("debug")
    assert vlogger.MAX_LEVEL is parse_log_level("critical")


def test_console_routes_info_to_stdout():
    out, err = io.StringIO(), io.StringIO()
    vlogger.register_logger(
        vlogger.MIN_LEVEL, vlogger.MAX_LEVEL, ConsoleLogger(timestamps=False, stdout=out, stderr=err)
    )
    vlogger.info("started %s", "core")
    vlogger.debug("value %d", 5)
    assert out.getvalue() == "[INFO] started core\n"
    assert "[DEBUG] value 5" in err.getvalue()
    assert "[INFO]" not in err.getvalue()


def test_set_log_level_filters_and_propagates():
    out, err = io.StringIO(), io.StringIO()
    console = ConsoleLogger(timestamps=False, stdout=out, stderr=err)
    vlogger.register_logger(vlogger.MIN_LEVEL, vlogger.MAX_LEVEL, console)
    vlogger.set_log_level(LogLevel.INFO)
    assert vlogger.get_log_level() is LogLevel.INFO
    assert console.get_log_level() == LOG_INFO
    vlogger.debug("hidden")
    vlogger.error("shown")
    assert "hidden" not in err.getvalue()
    assert "[ERROR] shown" in err.getvalue()


def test_prefix_and_default_streams(capsys):
    logger = ConsoleLogger(prefix="ipam: ", timestamps=False)
    logger.warning("careful")
    assert capsys.readouterr().err == "ipam: [WARNING] careful\n"


def test_critical_only_logger_filters_everything_else():
    err = io.StringIO()
    logger = ConsoleLogger(timestamps=False, stderr=err)
    logger.set_log_level(LOG_CRIT)
    logger.error("dropped")
    logger.critical("kept")
    assert err.getvalue() == "[CRITICAL] kept\n"


def test_register_partial_range():
    rec = _Recorder()
    vlogger.register_logger(LogLevel.CRITICAL, LogLevel.CRITICAL, rec)
    vlogger.critical("boom %s", "now")
    assert rec.messages == ["boom now"]


def test_register_out_of_range():
    with pytest.raises(ValueError):
        vlogger.register_logger(LogLevel.DEBUG, 7, NullLogger())


def test_fatal_logs_closes_and_exits():
    rec = _Recorder()
    vlogger.register_logger(vlogger.MIN_LEVEL, vlogger.MAX_LEVEL, rec)
    with pytest.raises(SystemExit) as exc:
        vlogger.fatal("cannot continue: %s", "config")
    assert exc.value.code == 1
    assert rec.messages == ["cannot continue: config"]
    assert rec.closed == 1


def test_null_logger_keeps_level():
    logger = NullLogger()
    assert logger.get_log_level() == LOG_DEBUG
    logger.set_log_level(LOG_CRIT)
    assert logger.get_log_level() == LOG_CRIT