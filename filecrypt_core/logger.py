import logging, json, sys, time, os


def get_logger(name="FileCrypt", level=None, to_file=None):
    """Unified structured logger for all filecrypt components."""
    logger = logging.getLogger(name)
    if level is None:
        level = os.getenv("FILECRYPT_LOG_LEVEL", "INFO").upper()
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt=json.dumps({
                "ts": "%(asctime)s",
                "level": "%(levelname)s",
                "name": "%(name)s",
                "msg": "%(message)s"
            }),
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        formatter.converter = time.gmtime  # Use UTC timestamps
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if to_file:
            # Ensure the directory exists before writing
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def set_level(level, prefix="FileCrypt"):
    """Apply a level to every logger created under `prefix`."""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith(prefix) and isinstance(logger, logging.Logger):
            logger.setLevel(level)
