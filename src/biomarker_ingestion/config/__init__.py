"""
Convenient imports for all settings
"""

from .extraction_config import extraction_settings, ExtractionSettings
from .storage_config import storage_settings, StorageSettings
from .logging_config import logging_settings, LoggingSettings
