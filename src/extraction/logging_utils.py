import logging
import sys

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Attach a stderr handler to the package logger.

    stdout is never used for logging since it may carry the FASTA output.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logger = logging.getLogger("extraction")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)
    logger.propagate = False
    return logger
