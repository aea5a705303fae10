import logging
import sys

from shopledger.config import settings


def get_logger(name: str) -> logging.Logger:
    """
    Return a module logger writing to stdout with a bracketed prefix, e.g.
    "[INVENTORY] decrement product=3 qty=2". Handlers are attached once per name
    so repeated imports don't duplicate output.
    """
    log = logging.getLogger(f"shopledger.{name}")
    log.setLevel(settings.LOG_LEVEL.upper())
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(f"[{name.upper()}] %(levelname)s %(message)s"))
        log.addHandler(h)
        log.propagate = False
    return log
