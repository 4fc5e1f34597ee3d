"""
Workflows module - Pipeline orchestration for digest generation.
"""
from workflows.backfill import run_backfill
from workflows.digest import DigestPipeline, DigestResult

__all__ = [
    "DigestPipeline",
    "DigestResult",
    "run_backfill",
]
