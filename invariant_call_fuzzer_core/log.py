# invariant_call_fuzzer_core/log.py
"""
Logging setup for the package. Modules log through `logging.getLogger(__name__)`;
callers that want output on the console or in a file call `configure_logging`.
"""
import logging
from typing import Optional

from . import config as core_config

PACKAGE_LOGGER_NAME = 'invariant_call_fuzzer_core'

_HANDLER_MARKER = '_invariant_call_fuzzer_handler'


def configure_logging(level: Optional[str] = None,
                      to_file: Optional[bool] = None,
                      file_path: Optional[str] = None
                     ) -> logging.Logger:
    """
    Attaches a single handler to the package logger. Unset arguments fall back to
    the LOG_* defaults in config. Calling it again replaces the level but never
    stacks a second handler.
    """
    effective_level = (level or core_config.LOG_LEVEL).upper()
    write_to_file = core_config.LOG_TO_FILE if to_file is None else to_file

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(effective_level)

    for handler in package_logger.handlers:
        if getattr(handler, _HANDLER_MARKER, False):
            handler.setLevel(effective_level)
            return package_logger

    if write_to_file:
        handler: logging.Handler = logging.FileHandler(file_path or core_config.LOG_FILE_PATH)
    else:
        handler = logging.StreamHandler()
    handler.setLevel(effective_level)
    handler.setFormatter(logging.Formatter(core_config.LOG_FORMAT))
    setattr(handler, _HANDLER_MARKER, True)
    package_logger.addHandler(handler)
    return package_logger
