#!/usr/bin/env python3
"""
SessionPulse Cron Analysis Runner
=================================

Cron entry point: recomputes the full session analysis once, then exits.
Input, output and logging come from SESSIONPULSE_* environment variables
(or .env).

Local cron:
    0 * * * * cd /path/to/sessionpulse && python scripts/cron_analysis.py >> data/cron.log 2>&1
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv
load_dotenv(project_root / ".env")

logger = logging.getLogger("sessionpulse.cron")


def main():
    from sessionpulse.data.config import get_settings
    from sessionpulse.errors import ConfigurationError
    from sessionpulse.orchestrator.logging_config import setup_logging
    from sessionpulse.orchestrator.pipeline import AnalysisPipeline, PipelineStatus

    settings = get_settings()
    setup_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_logs,
        log_file=settings.logging.log_file,
    )

    logger.info("=" * 60)
    logger.info(f"SESSIONPULSE CRON ANALYSIS - {datetime.now(timezone.utc).isoformat()}")
    logger.info("=" * 60)

    try:
        pipeline = AnalysisPipeline(settings=settings)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    result = pipeline.run()
    logger.info(f"Result: {json.dumps(result.get_summary(), indent=2, default=str)}")

    # Partial failures (skipped records) still produce a valid analysis
    if result.status in (PipelineStatus.COMPLETED, PipelineStatus.PARTIAL_FAILURE):
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
