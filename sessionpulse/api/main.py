"""
SessionPulse FastAPI Application
================================

Read-only REST API over the latest session analysis.

Endpoints:
    GET  /api/health               - Health check
    GET  /api/sessions             - Sessions, searchable and sortable
    GET  /api/sessions/attention   - Problematic and mixed sessions
    GET  /api/sessions/{id}        - One session with its reviews
    GET  /api/trends/monthly       - Monthly sentiment / rating trend
    GET  /api/reviews/recent       - Latest reviews with text
    GET  /api/reviews/export.csv   - Reviews as CSV
    GET  /api/kpis                 - Dashboard KPI cards

Usage:
    uvicorn sessionpulse.api.main:app --reload --port 8000

    Or with CLI:
    python -m sessionpulse.api.main
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging
import os

from .. import __version__
from ..data.config import get_settings
from ..orchestrator.reports import (
    all_reviews,
    date_range_label,
    export_reviews_csv,
    filter_by_status,
    find_session,
    kpi_summary,
    monthly_trend,
    recent_reviews,
    search_sessions,
    sessions_needing_attention,
    sort_sessions,
)
from .models import (
    HealthResponse,
    KpiResponse,
    RecentReviewsResponse,
    SentimentLabelEnum,
    SessionDetailModel,
    SessionListResponse,
    SessionSortEnum,
    SessionStatusEnum,
    SortDirectionEnum,
    TrendResponse,
)
from .services import AnalysisStore, AnalysisUnavailableError, session_detail, session_summary

logger = logging.getLogger(__name__)

# Store (lazy-loaded)
_store: Optional[AnalysisStore] = None


def get_store() -> AnalysisStore:
    """Analysis store for the file named by settings."""
    global _store
    if _store is None:
        _store = AnalysisStore(get_settings().paths.sessions_file)
    return _store


def _sessions(store: AnalysisStore):
    try:
        return store.get_sessions()
    except AnalysisUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting SessionPulse API...")
    store = get_store()
    if not store.is_available():
        logger.warning(f"No analysis available yet at {store.path}")
    yield
    logger.info("Shutting down SessionPulse API...")


# Create FastAPI app
app = FastAPI(
    title="SessionPulse API",
    description="Review sentiment and session attention scoring",
    version=__version__,
    lifespan=lifespan,
)

# CORS configuration
# Extra origins via CORS_ORIGINS (comma-separated)
_default_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
_extra_origins = os.getenv("CORS_ORIGINS", "")
if _extra_origins:
    _default_origins.extend([o.strip() for o in _extra_origins.split(",") if o.strip()])

app.add_middleware(
    CORSMiddleware,
    allow_origins=_default_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# ============================================================================
# HEALTH ENDPOINT
# ============================================================================

@app.get("/api/health", response_model=HealthResponse)
async def health_check(store: AnalysisStore = Depends(get_store)):
    """
    Health check endpoint.

    "degraded" when no analysis file can be served yet.
    """
    try:
        sessions = store.get_sessions()
    except AnalysisUnavailableError:
        sessions = None

    return HealthResponse(
        status="healthy" if sessions is not None else "degraded",
        version=__version__,
        analysis_file=store.path,
        analysis_loaded=sessions is not None,
        sessions=len(sessions or []),
    )


# ============================================================================
# SESSION ENDPOINTS
# ============================================================================

@app.get("/api/sessions", response_model=SessionListResponse)
async def list_sessions(
    status: Optional[SessionStatusEnum] = Query(None, description="Filter by session status"),
    q: Optional[str] = Query(None, description="Search display title and session id"),
    sort: SessionSortEnum = Query(SessionSortEnum.ATTENTION_SCORE, description="Sort column"),
    direction: SortDirectionEnum = Query(SortDirectionEnum.DESC, alias="dir", description="asc or desc"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum sessions returned"),
    store: AnalysisStore = Depends(get_store),
):
    """Sessions, most urgent first unless another sort is asked for."""
    sessions = search_sessions(filter_by_status(_sessions(store), status.value if status else None), q)
    ranked = sort_sessions(sessions, sort.value, direction.value)
    total = len(ranked)
    if limit:
        ranked = ranked[:limit]
    return SessionListResponse(
        sessions=[session_summary(s) for s in ranked],
        total=total,
    )


# Declared before /api/sessions/{session_id} so "attention" is not taken as an id
@app.get("/api/sessions/attention", response_model=SessionListResponse)
async def list_attention_sessions(
    status: Optional[SessionStatusEnum] = Query(None, description="problematic or mixed"),
    store: AnalysisStore = Depends(get_store),
):
    """Sessions that need attention (problematic, then mixed)."""
    sessions = sessions_needing_attention(_sessions(store), status.value if status else None)
    return SessionListResponse(
        sessions=[session_summary(s) for s in sessions],
        total=len(sessions),
    )


@app.get(
    "/api/sessions/{session_id}",
    response_model=SessionDetailModel,
    response_model_exclude_unset=True,
)
async def get_session(session_id: str, store: AnalysisStore = Depends(get_store)):
    """One session with its reviews, latest first."""
    session = find_session(_sessions(store), session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return session_detail(session)


# ============================================================================
# TRENDS / KPI ENDPOINTS
# ============================================================================

@app.get("/api/trends/monthly", response_model=TrendResponse)
async def get_monthly_trend(store: AnalysisStore = Depends(get_store)):
    """Sentiment mix and average rating per month (dated reviews only)."""
    reviews = all_reviews(_sessions(store))
    return TrendResponse(
        months=monthly_trend(reviews),
        date_range=date_range_label(reviews),
    )


@app.get("/api/kpis", response_model=KpiResponse)
async def get_kpis(store: AnalysisStore = Depends(get_store)):
    return kpi_summary(_sessions(store))


@app.get("/api/reviews/recent", response_model=RecentReviewsResponse)
async def get_recent_reviews(
    limit: int = Query(4, ge=1, le=50, description="Maximum reviews returned"),
    sentiment: Optional[SentimentLabelEnum] = Query(None, description="Filter by sentiment label"),
    session_id: Optional[str] = Query(None, description="Only reviews of this session"),
    store: AnalysisStore = Depends(get_store),
):
    """Latest reviews that have text, newest first."""
    sessions = _sessions(store)
    if session_id:
        sessions = [s for s in sessions if s.get("session_id") == session_id]
    reviews = all_reviews(sessions)
    if sentiment:
        reviews = [r for r in reviews if r.get("sentiment_label") == sentiment.value]
    latest = recent_reviews(reviews, limit)
    return RecentReviewsResponse(reviews=latest, total=len(latest))


@app.get("/api/reviews/export.csv")
async def export_reviews(
    sentiment: Optional[SentimentLabelEnum] = Query(None, description="Filter by sentiment label"),
    session_id: Optional[str] = Query(None, description="Only reviews of this session"),
    store: AnalysisStore = Depends(get_store),
):
    """Export reviews as a CSV file."""
    sessions = _sessions(store)
    if session_id:
        sessions = [s for s in sessions if s.get("session_id") == session_id]
    csv_text = export_reviews_csv(
        all_reviews(sessions),
        sentiment=sentiment.value if sentiment else None,
    )
    filename = f"reviews-export-{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M')}.csv"

    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    print("=" * 60)
    print("SESSIONPULSE API SERVER")
    print("=" * 60)
    print()
    print("API Documentation:")
    print("  - Swagger UI: http://localhost:8000/docs")
    print()
    print("Endpoints:")
    print("  GET  /api/health              - Health check")
    print("  GET  /api/sessions            - Ranked sessions")
    print("  GET  /api/sessions/attention  - Sessions needing attention")
    print("  GET  /api/trends/monthly      - Monthly trend")
    print("  GET  /api/reviews/recent      - Recent reviews")
    print("  GET  /api/reviews/export.csv  - CSV export")
    print("  GET  /api/kpis                - KPI cards")
    print()
    print("=" * 60)

    uvicorn.run(
        "sessionpulse.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
