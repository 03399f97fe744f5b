"""
SessionPulse Analysis Pipeline Orchestrator
===========================================

Orchestrates one full analysis run:
1. LOAD: read raw reviews, skip malformed records
2. ENRICHMENT: sentiment, themes, pain points, feature requests per review
3. AGGREGATION: per-session statistics, attention score, status
4. EXPORT: write sessions_analysis.json and enriched_reviews.json

Features:
    - Full recompute each run (no incremental state)
    - Observable (detailed logging and stage metrics)
    - Resilient: a failing review is skipped, never the whole run
    - Atomic output: both files are staged, then replaced together

Usage:
    from sessionpulse.orchestrator.pipeline import AnalysisPipeline

    pipeline = AnalysisPipeline()
    result = pipeline.run(input_path="data/reviews.json", output_dir="data")
"""

import logging
import os
import tempfile
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..data.config import Settings, get_settings
from ..data.review_loader import LoadResult, load_reviews, parse_records
from ..reviews.lexicons import LexiconConfig, load_lexicons
from ..reviews.review_enricher import ReviewEnricher
from ..reviews.review_models import EnrichedReview, Review
from ..scoring.records import dumps_reviews, dumps_sessions
from ..scoring.scoring_config import ScoringConfig, DEFAULT_CONFIG
from ..scoring.session_scorer import SessionAnalysis, SessionScorer

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PipelineStage(Enum):
    """Pipeline execution stages."""
    LOAD = "load"
    ENRICHMENT = "enrichment"
    AGGREGATION = "aggregation"
    EXPORT = "export"


class PipelineStatus(Enum):
    """Pipeline run status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"


@dataclass
class StageResult:
    """Result of a single pipeline stage."""
    stage: PipelineStage
    status: PipelineStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    metrics: Dict[str, Any] = field(default_factory=dict)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Calculate stage duration."""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def add_error(self, error_type: str, message: str, details: Optional[Dict] = None):
        """Record an error."""
        self.errors.append({
            "type": error_type,
            "message": message,
            "details": details or {},
            "timestamp": _utcnow().isoformat(),
        })


@dataclass
class PipelineResult:
    """Complete pipeline run result."""
    run_id: str
    status: PipelineStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    stages: Dict[PipelineStage, StageResult] = field(default_factory=dict)
    analyses: List[SessionAnalysis] = field(default_factory=list)
    output_files: List[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Calculate total pipeline duration."""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def sessions_scored(self) -> int:
        return len(self.analyses)

    def get_summary(self) -> Dict[str, Any]:
        """Get pipeline run summary."""
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "stages": {
                stage.value: {
                    "status": result.status.value,
                    "duration_seconds": result.duration_seconds,
                    "metrics": result.metrics,
                    "error_count": len(result.errors),
                }
                for stage, result in self.stages.items()
            },
            "sessions_scored": self.sessions_scored,
            "output_files": self.output_files,
        }


def _stage_temp(path: str, content: str) -> str:
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
    except BaseException:
        os.unlink(tmp_path)
        raise
    return tmp_path


def write_all_atomic(files: List[Tuple[str, str]]) -> None:
    """
    Write several text files as one unit.

    Every file is first written to a temp file beside its target; targets
    are only replaced once all temp files exist. If staging fails, no
    target is touched and the temp files are removed.
    """
    staged: List[Tuple[str, str]] = []
    try:
        for path, content in files:
            staged.append((_stage_temp(path, content), path))
        for tmp_path, path in staged:
            os.replace(tmp_path, path)
    except BaseException:
        for tmp_path, _ in staged:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
        raise


class AnalysisPipeline:
    """
    Analysis pipeline orchestrator for SessionPulse.

    Lexicons and scoring config are loaded once at construction and never
    mutated during a run. A ConfigurationError raised here is fatal.
    """

    def __init__(
        self,
        lexicons: Optional[LexiconConfig] = None,
        config: Optional[ScoringConfig] = None,
        settings: Optional[Settings] = None,
        workers: Optional[int] = None,
    ):
        self.settings = settings or get_settings()
        base_config = config or DEFAULT_CONFIG
        if config is None and self.settings.runtime.top_n != base_config.extraction.top_n:
            base_config = base_config.with_top_n(self.settings.runtime.top_n)
        self.config = base_config
        self.config.validate()

        self.lexicons = lexicons or load_lexicons(self.settings.paths.lexicon_path)
        self.workers = workers or self.settings.runtime.workers

        self.enricher = ReviewEnricher(self.lexicons, self.config)
        self.scorer = SessionScorer(self.config)

        logger.info(
            f"AnalysisPipeline initialized: workers={self.workers}, "
            f"top_n={self.config.extraction.top_n}, themes={self.lexicons.categories}"
        )

    # =========================================================================
    # IN-MEMORY ANALYSIS
    # =========================================================================

    def _safe_enrich(self, review: Review) -> Tuple[Review, Optional[EnrichedReview], Optional[str]]:
        try:
            return review, self.enricher.enrich(review), None
        except Exception as e:
            logger.exception(f"Enrichment failed for review in session {review.session_id}")
            return review, None, f"{type(e).__name__}: {e}"

    def enrich(self, reviews: Iterable[Review], stage: Optional[StageResult] = None) -> List[EnrichedReview]:
        """Enrich reviews in input order; a failing review is skipped."""
        reviews = list(reviews)
        if self.workers > 1 and len(reviews) > 1:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="enrich") as pool:
                outcomes = list(pool.map(self._safe_enrich, reviews))
        else:
            outcomes = [self._safe_enrich(r) for r in reviews]

        enriched: List[EnrichedReview] = []
        for review, result, error in outcomes:
            if result is not None:
                enriched.append(result)
            elif stage is not None:
                stage.add_error("enrichment_failed", error or "unknown", {
                    "session_id": review.session_id,
                    "review_id": review.review_id,
                })
        return enriched

    def analyze(self, reviews: Iterable[Review]) -> Tuple[List[EnrichedReview], List[SessionAnalysis]]:
        """Enrich then aggregate, without touching the filesystem."""
        enriched = self.enrich(reviews)
        return enriched, self.scorer.score_sessions(enriched, workers=self.workers)

    def analyze_records(self, records: Iterable[Any]) -> Tuple[List[EnrichedReview], List[SessionAnalysis]]:
        """Same as analyze() but from raw input mappings (malformed ones skipped)."""
        return self.analyze(parse_records(records).reviews)

    # =========================================================================
    # MAIN ORCHESTRATION
    # =========================================================================

    def run(
        self,
        input_path: Optional[str] = None,
        output_dir: Optional[str] = None,
        write_output: bool = True,
    ) -> PipelineResult:
        """
        Run the complete analysis.

        Args:
            input_path: Raw reviews file (default: settings)
            output_dir: Output directory (default: settings)
            write_output: Skip the EXPORT stage when False

        Returns:
            PipelineResult with complete run details. A FAILED run writes
            nothing.
        """
        run_id = str(uuid.uuid4())
        input_path = input_path or self.settings.paths.input_path
        output_dir = output_dir or self.settings.paths.output_dir

        result = PipelineResult(
            run_id=run_id,
            status=PipelineStatus.RUNNING,
            started_at=_utcnow(),
        )
        logger.info(f"=== Starting analysis run (run_id={run_id}) ===", extra={"run_id": run_id})

        try:
            # STAGE 1: LOAD
            load_stage, loaded = self._run_load_stage(input_path)
            result.stages[PipelineStage.LOAD] = load_stage
            if load_stage.status == PipelineStatus.FAILED:
                result.status = PipelineStatus.FAILED
                return result

            # STAGE 2: ENRICHMENT
            enrich_stage, enriched = self._run_enrichment_stage(loaded.reviews)
            result.stages[PipelineStage.ENRICHMENT] = enrich_stage

            # STAGE 3: AGGREGATION
            agg_stage, analyses = self._run_aggregation_stage(enriched)
            result.stages[PipelineStage.AGGREGATION] = agg_stage
            result.analyses = analyses

            # STAGE 4: EXPORT
            if write_output:
                export_stage = self._run_export_stage(enriched, analyses, output_dir)
                result.stages[PipelineStage.EXPORT] = export_stage
                result.output_files = export_stage.metrics.get("files", [])

            has_errors = any(s.errors for s in result.stages.values())
            failed = any(s.status == PipelineStatus.FAILED for s in result.stages.values())
            if failed:
                result.status = PipelineStatus.FAILED
            elif has_errors:
                result.status = PipelineStatus.PARTIAL_FAILURE
            else:
                result.status = PipelineStatus.COMPLETED

        except Exception as e:
            logger.exception(f"Critical pipeline failure: {e}")
            result.status = PipelineStatus.FAILED

        finally:
            result.completed_at = _utcnow()
            logger.info(
                f"=== Analysis run {run_id} finished: {result.status.value} "
                f"({result.sessions_scored} sessions, {result.duration_seconds:.2f}s) ===",
                extra={"run_id": run_id, "duration": result.duration_seconds},
            )

        return result

    # =========================================================================
    # STAGES
    # =========================================================================

    def _run_load_stage(self, input_path: str) -> Tuple[StageResult, LoadResult]:
        stage = StageResult(PipelineStage.LOAD, PipelineStatus.RUNNING, _utcnow())
        loaded = LoadResult()
        try:
            loaded = load_reviews(input_path)
            for skipped in loaded.skipped:
                stage.add_error("malformed_record", skipped["error"], skipped)
            stage.metrics = {
                "records_read": loaded.total,
                "reviews_loaded": len(loaded.reviews),
                "reviews_skipped": len(loaded.skipped),
            }
            stage.status = PipelineStatus.COMPLETED
        except (OSError, ValueError) as e:
            logger.error(f"Cannot load reviews from {input_path}: {e}")
            stage.add_error("load_failed", str(e), {"input_path": input_path})
            stage.status = PipelineStatus.FAILED
        stage.completed_at = _utcnow()
        return stage, loaded

    def _run_enrichment_stage(self, reviews: List[Review]) -> Tuple[StageResult, List[EnrichedReview]]:
        stage = StageResult(PipelineStage.ENRICHMENT, PipelineStatus.RUNNING, _utcnow())
        enriched = self.enrich(reviews, stage)
        labels: Dict[str, int] = {}
        for review in enriched:
            labels[review.sentiment_label.value] = labels.get(review.sentiment_label.value, 0) + 1
        stage.metrics = {
            "reviews_enriched": len(enriched),
            "enrichment_failures": len(stage.errors),
            "labels": labels,
        }
        stage.status = PipelineStatus.COMPLETED
        stage.completed_at = _utcnow()
        logger.info(
            f"Enriched {len(enriched)}/{len(reviews)} reviews: {labels}",
            extra={"stage": stage.stage.value, "count": len(enriched)},
        )
        return stage, enriched

    def _run_aggregation_stage(self, enriched: List[EnrichedReview]) -> Tuple[StageResult, List[SessionAnalysis]]:
        stage = StageResult(PipelineStage.AGGREGATION, PipelineStatus.RUNNING, _utcnow())
        analyses = self.scorer.score_sessions(enriched, workers=self.workers)
        by_status: Dict[str, int] = {}
        for analysis in analyses:
            by_status[analysis.status.value] = by_status.get(analysis.status.value, 0) + 1
        stage.metrics = {
            "sessions_scored": len(analyses),
            "by_status": by_status,
        }
        stage.status = PipelineStatus.COMPLETED
        stage.completed_at = _utcnow()
        return stage, analyses

    def _run_export_stage(
        self,
        enriched: List[EnrichedReview],
        analyses: List[SessionAnalysis],
        output_dir: str,
    ) -> StageResult:
        stage = StageResult(PipelineStage.EXPORT, PipelineStatus.RUNNING, _utcnow())
        sessions_file = os.path.join(output_dir, "sessions_analysis.json")
        reviews_file = os.path.join(output_dir, "enriched_reviews.json")
        try:
            # sessions_analysis.json goes last: the API serves it, so it
            # only changes once its companion is in place
            write_all_atomic([
                (reviews_file, dumps_reviews(enriched)),
                (sessions_file, dumps_sessions(analyses)),
            ])
            stage.metrics = {"files": [sessions_file, reviews_file]}
            stage.status = PipelineStatus.COMPLETED
            logger.info(f"Wrote {len(analyses)} sessions to {sessions_file}")
        except OSError as e:
            logger.error(f"Export failed: {e}")
            stage.add_error("export_failed", str(e), {"output_dir": output_dir})
            stage.status = PipelineStatus.FAILED
        stage.completed_at = _utcnow()
        return stage
