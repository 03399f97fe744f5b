"""
SessionPulse
============

Deterministic review analysis and session scoring.

Turns free-text reviews attached to product sessions (journeys) into
per-session risk signals: sentiment mix, themes, pain points, feature
requests, and a 0-100 attention score with a status.

Subpackages:
    reviews      - tokenization, sentiment, theme and signal extraction
    scoring      - session aggregation, attention score, output records
    data         - runtime settings and review loading
    orchestrator - pipeline, reports, logging, CLI
    api          - FastAPI app serving the analysis file
"""

__version__ = "1.0.0"
