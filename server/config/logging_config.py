"""Logging configuration"""
import logging
import sys


def setup_logging(log_level: str = "INFO"):
    """Configure application logging"""

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    # Root logger; replace our own handler on repeated calls (app factory in tests)
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    for handler in list(root_logger.handlers):
        if getattr(handler, "_agri_console", False):
            root_logger.removeHandler(handler)
    console_handler._agri_console = True
    root_logger.addHandler(console_handler)

    # Set specific loggers
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    # Per-turn scoring detail is noisy outside of DEBUG
    logging.getLogger("core.intent_engine").setLevel(
        logging.DEBUG if log_level.upper() == "DEBUG" else logging.INFO
    )

    logging.info(f"Logging configured with level: {log_level}")
