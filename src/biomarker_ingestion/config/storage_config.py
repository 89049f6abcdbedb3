# ============================================================================
# src/biomarker_ingestion/config/storage_config.py
# ============================================================================
"""
Storage Settings
- SQLite database location
- Insert batching
- Stale processing claims
"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings


class StorageSettings(BaseSettings):
    LAB_DB_PATH: Path = Field(
        default=Path("data/lab_results.db"),
        description="SQLite database holding lab documents, biomarkers and processing status"
    )
    STORAGE_BATCH_SIZE: int = Field(
        default=50,
        gt=0,
        description="Biomarker rows per INSERT statement"
    )
    PROCESSING_STALE_AFTER_SECONDS: int = Field(
        default=900,
        ge=0,
        description="A 'processing' claim older than this may be taken over by a new run"
    )
    SQLITE_TIMEOUT: float = Field(
        default=30.0,
        description="Seconds to wait on a locked database"
    )


storage_settings = StorageSettings()
