import logging
import sys
import tempfile
from contextlib import contextmanager
from typing import Iterator


logger = logging.getLogger("gitprefetch")

_FORMAT = "%(message)s"


class StderrHandler(logging.StreamHandler):
    """StreamHandler bound to whatever ``sys.stderr`` is at emit time."""

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def configure_logging(debug: bool):
    """
    Configures the logging system based on the debug flag.

    Diagnostics go to stderr; stdout is reserved for the result record.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    if not any(isinstance(h, StderrHandler) for h in logger.handlers):
        handler = StderrHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)


@contextmanager
def quiet_mode(enabled: bool) -> Iterator[None]:
    """
    Buffer every diagnostic in a temporary file while the block runs.

    The buffer is replayed to stderr only if the block fails (an exception,
    or a non-zero SystemExit) and is deleted in every case.
    """
    if not enabled:
        yield
        return

    with tempfile.TemporaryFile(mode="w+", prefix="git-checkout-err-") as errfile:
        handler = logging.StreamHandler(errfile)
        handler.setFormatter(logging.Formatter(_FORMAT))

        previous_handlers = list(logger.handlers)
        previous_propagate = logger.propagate
        for h in previous_handlers:
            logger.removeHandler(h)
        logger.addHandler(handler)
        logger.propagate = False

        failed = True
        try:
            yield
            failed = False
        except SystemExit as e:
            failed = e.code not in (None, 0)
            raise
        finally:
            handler.flush()
            logger.removeHandler(handler)
            for h in previous_handlers:
                logger.addHandler(h)
            logger.propagate = previous_propagate
            if failed:
                errfile.seek(0)
                sys.stderr.write(errfile.read())
                sys.stderr.flush()
