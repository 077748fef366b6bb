"""
Vadis Core Module

Contains core systems including configuration, constants, exceptions, and logging.
"""

from .config import AnalysisConfig, StageConfig, load_config, get_default_config
from .constants import *
from .exceptions import *
from .logging_config import setup_logging, get_logger

__all__ = [
    'AnalysisConfig',
    'StageConfig',
    'load_config',
    'get_default_config',
    'setup_logging',
    'get_logger',
]
