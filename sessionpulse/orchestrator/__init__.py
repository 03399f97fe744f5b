"""
SessionPulse Orchestrator Module
================================

Orchestration layer for the SessionPulse analysis.

Components:
    - AnalysisPipeline: load, enrich, aggregate and export one run
    - reports: read-side views over a written analysis file
    - CLI: Command-line interface

Usage:
    from sessionpulse.orchestrator import AnalysisPipeline

    result = AnalysisPipeline().run(input_path="data/reviews.json")
"""

from .pipeline import (
    AnalysisPipeline,
    PipelineResult,
    PipelineStatus,
    PipelineStage,
    StageResult,
)
from .logging_config import setup_logging

__all__ = [
    # Pipeline
    "AnalysisPipeline",
    "PipelineResult",
    "PipelineStatus",
    "PipelineStage",
    "StageResult",
    # Logging
    "setup_logging",
]
