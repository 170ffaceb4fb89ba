"""Utility modules for AITrans.

This package provides helpers for logging, file handling and string processing.
"""

from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

__all__: list[str] = ["FileUtils", "LoggerUtils", "StringUtils"]
