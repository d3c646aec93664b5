"""Logging configuration for the proxy."""

import logging
import sys

LOGGER_NAME = "abacus2api"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Set up logging with proper handlers and formatters."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    
    # Clear any existing handlers
    logger.handlers.clear()
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    
    # Propagate so pytest's caplog and uvicorn's root handlers see our records
    logger.propagate = True
    
    return logger


# Global logger instance
logger = setup_logging()
