"""
SQLite storage for lab documents, biomarker records and processing status.
"""

from .lab_store import LabStore

__all__ = ["LabStore"]
