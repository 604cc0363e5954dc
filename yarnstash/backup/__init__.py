"""
Backup pipeline: snapshot assembly, retention and pattern file upload.
"""

from .assembler import BackupAssembler
from .retention import (
    RetentionManager,
    RetentionResult,
    coerce_keep_count,
    is_backup_of,
)
from .patterns import PatternBatchUploader, PatternUploadOutcome, PatternUploadReport

__all__ = [
    "BackupAssembler",
    "RetentionManager",
    "RetentionResult",
    "coerce_keep_count",
    "is_backup_of",
    "PatternBatchUploader",
    "PatternUploadOutcome",
    "PatternUploadReport",
]
