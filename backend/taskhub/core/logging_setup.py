import logging
import sys

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _ThirdPartyNoiseFilter(logging.Filter):
    """Keep taskhub and uvicorn logs; only warnings and up from anything else."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith("taskhub") or name.startswith("uvicorn"):
            return True
        # SQL echo is opted into explicitly through DB_ECHO
        if name.startswith("sqlalchemy.engine"):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(level: str = "INFO") -> None:
    """
    Install a single stderr handler on the root logger.

    Safe to call more than once; existing root handlers are replaced.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    handler.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(handler)

    logging.captureWarnings(True)
