import logging
import sys
from typing import Callable, Optional

from amrex_reader.utilities.configure import ARConfig, configuration_callbacks

_ar_sh: Optional[logging.StreamHandler] = None
_original_emitter: Optional[Callable[[logging.LogRecord], None]] = None


def set_log_level(level):
    """
    Select which minimal logging level should be displayed.

    Parameters
    ----------
    level: int or str
        Possible values by increasing level:
        0 or "notset"
        1 or "all"
        10 or "debug"
        20 or "info"
        30 or "warning"
        40 or "error"
        50 or "critical"
    """
    if isinstance(level, str):
        level = level.upper()

    if level == "ALL":  # non-standard alias
        level = 1
    arLogger.setLevel(level)
    arLogger.debug("Set log level to %s", level)


arLogger = logging.getLogger("amrex_reader")


class DuplicateFilter(logging.Filter):
    """A filter that removes duplicated successive log entries."""

    def filter(self, record):
        current_log = (record.module, record.levelno, record.msg, record.args)
        if current_log != getattr(self, "last_log", None):
            self.last_log = current_log
            return True
        return False


arLogger.addFilter(DuplicateFilter())


def add_coloring_to_emit_ansi(fn):
    def new(*args):
        levelno = args[0].levelno
        if levelno >= 40:
            color = "\x1b[31m"  # red
        elif levelno >= 30:
            color = "\x1b[33m"  # yellow
        elif levelno >= 20:
            color = "\x1b[32m"  # green
        elif levelno >= 10:
            color = "\x1b[35m"  # pink
        else:
            color = "\x1b[0m"  # normal
        args[0].levelname = color + args[0].levelname + "\x1b[0m"
        return fn(*args)

    return new


ufstring = "%(name)-3s: [%(levelname)-9s] %(asctime)s %(message)s"
cfstring = "%(name)-3s: [%(levelname)-18s] %(asctime)s %(message)s"


def colorize_logging():
    f = logging.Formatter(cfstring)
    arLogger.handlers[0].setFormatter(f)
    arLogger.handlers[0].emit = add_coloring_to_emit_ansi(arLogger.handlers[0].emit)


def uncolorize_logging():
    if None not in (_original_emitter, _ar_sh):
        f = logging.Formatter(ufstring)
        _ar_sh.setFormatter(f)
        _ar_sh.emit = _original_emitter


def disable_stream_logging():
    if len(arLogger.handlers) > 0:
        arLogger.removeHandler(arLogger.handlers[0])
    arLogger.addHandler(logging.NullHandler())


def _runtime_configuration(arcfg: ARConfig) -> None:
    # only run this at the end of amrex_reader.__init__, once arcfg is loaded

    global _original_emitter, _ar_sh

    if arcfg.get("amrex_reader", "stdout_stream_logging"):
        stream = sys.stdout
    else:
        stream = sys.stderr

    _level = min(max(arcfg.get("amrex_reader", "log_level"), 0), 50)

    if arcfg.get("amrex_reader", "suppress_stream_logging"):
        disable_stream_logging()
    else:
        _ar_sh = logging.StreamHandler(stream=stream)
        _ar_sh.setFormatter(logging.Formatter(ufstring))
        arLogger.addHandler(_ar_sh)
        arLogger.setLevel(_level)
        arLogger.propagate = False

        _original_emitter = _ar_sh.emit

        if arcfg.get("amrex_reader", "colored_logs"):
            colorize_logging()


configuration_callbacks.append(_runtime_configuration)
