"""
Batch import orchestration.
"""

from .pipeline import BackupImportPipeline

__all__ = [
    "BackupImportPipeline",
]
