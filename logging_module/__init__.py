"""Logging module for the stream host control panel.

Main Components:
    - setup_logging: Configure console and rotating JSON file handlers
    - JsonFormatter: Structured JSON record formatter
    - LoggingConfig: Configuration management

Example:
    >>> from logging_module import LoggingConfig, setup_logging
    >>> setup_logging(LoggingConfig.from_env())
"""

from logging_module.config import LoggingConfig
from logging_module.logger import JsonFormatter, setup_logging

__version__ = "1.0.0"
__all__ = ["setup_logging", "LoggingConfig", "JsonFormatter"]
