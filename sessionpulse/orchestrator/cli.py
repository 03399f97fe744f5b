"""
SessionPulse Orchestrator CLI
=============================

Command-line interface for the SessionPulse analysis pipeline.

Commands:
    analyze       - Run the full analysis over a reviews file
    rank          - List sessions (search, sort by any score column)
    export        - Export reviews of an analysis file as CSV
    check-config  - Validate lexicons and scoring configuration

Usage:
    python -m sessionpulse.orchestrator.cli analyze --input data/reviews.json
    python -m sessionpulse.orchestrator.cli rank --analysis data/sessions_analysis.json --status problematic
    python -m sessionpulse.orchestrator.cli export --analysis data/sessions_analysis.json --sentiment negative
    python -m sessionpulse.orchestrator.cli check-config --lexicons my_lexicons.json
"""

import argparse
import json
import sys

from ..data.config import get_settings
from ..errors import ConfigurationError
from ..reviews.lexicons import load_lexicons
from ..scoring.scoring_config import DEFAULT_CONFIG
from .logging_config import setup_logging
from .pipeline import AnalysisPipeline, PipelineStatus
from .reports import (
    SORT_DIRECTIONS,
    SORT_KEYS,
    all_reviews,
    export_reviews_csv,
    filter_by_status,
    format_session_title,
    latest_review_date,
    load_analysis,
    search_sessions,
    sort_sessions,
)


def cmd_analyze(args):
    """Run the analysis pipeline."""
    print("=" * 60)
    print("SESSIONPULSE ANALYSIS")
    print("=" * 60)

    try:
        settings = get_settings()
        lexicons = load_lexicons(args.lexicons or settings.paths.lexicon_path)
        pipeline = AnalysisPipeline(lexicons=lexicons, settings=settings, workers=args.workers)
    except ConfigurationError as e:
        print(f"\nERROR: Invalid configuration: {e}")
        return 1

    result = pipeline.run(input_path=args.input, output_dir=args.output_dir)

    print()
    print(f"Status: {result.status.value}")
    print(f"Duration: {result.duration_seconds:.2f} seconds")
    print(f"Sessions scored: {result.sessions_scored}")
    print()

    print("Stage Results:")
    for stage, stage_result in result.stages.items():
        status_icon = "✓" if stage_result.status == PipelineStatus.COMPLETED else "✗"
        duration = f"{stage_result.duration_seconds:.2f}s" if stage_result.duration_seconds is not None else "N/A"
        print(f"  {status_icon} {stage.value}: {stage_result.status.value} ({duration})")
        if stage_result.errors and args.verbose:
            for error in stage_result.errors:
                print(f"    - {error['type']}: {error['message']}")

    if result.output_files:
        print()
        print("Output:")
        for path in result.output_files:
            print(f"  {path}")

    if result.status == PipelineStatus.FAILED:
        return 1
    return 0


def _iso(value):
    return value.isoformat() if value else None


def cmd_rank(args):
    """List sessions, by attention score unless another sort is given."""
    try:
        analyses = load_analysis(args.analysis or get_settings().paths.sessions_file)
    except (OSError, ValueError) as e:
        print(f"ERROR: Cannot read analysis: {e}")
        return 1

    sessions = search_sessions(filter_by_status(analyses, args.status), args.search)
    ranked = sort_sessions(sessions, args.sort, args.dir)
    if args.limit:
        ranked = ranked[:args.limit]

    if args.json:
        rows = [
            {
                "session_id": s.get("session_id"),
                "session_title": s.get("session_title"),
                "attention_score": s.get("attention_score"),
                "status": s.get("status"),
                "n_reviews": s.get("n_reviews"),
                "avg_rating": s.get("avg_rating"),
                "pct_negative": s.get("pct_negative"),
                "last_review_date": _iso(latest_review_date(s.get("reviews") or [])),
            }
            for s in ranked
        ]
        print(json.dumps(rows, indent=2, ensure_ascii=False))
        return 0

    if not ranked:
        print("No sessions found.")
        return 0

    print("=" * 60)
    print(f"SESSIONS BY {args.sort.upper()} ({args.dir})")
    print("=" * 60)
    print()
    for i, session in enumerate(ranked, 1):
        title = format_session_title(session.get("session_id"), session.get("session_title"))
        rating = session.get("avg_rating")
        print(f"{i}. {title} [{session.get('session_id')}]")
        print(f"   Score: {session.get('attention_score')}/100 ({session.get('status')})")
        print(f"   Reviews: {session.get('n_reviews')}, "
              f"rating: {rating if rating is not None else 'n/a'}, "
              f"negative: {(session.get('pct_negative') or 0) * 100:.1f}%")
        pains = session.get("top_pain_points") or []
        if pains:
            print(f"   Top pain point: {pains[0]['text']} (x{pains[0]['count']})")
        print()

    print(f"Total: {len(ranked)} sessions")
    return 0


def cmd_export(args):
    """Export reviews as CSV."""
    try:
        analyses = load_analysis(args.analysis or get_settings().paths.sessions_file)
    except (OSError, ValueError) as e:
        print(f"ERROR: Cannot read analysis: {e}")
        return 1

    csv_text = export_reviews_csv(all_reviews(analyses), sentiment=args.sentiment)
    rows = csv_text.count("\n")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(csv_text + "\n")
        print(f"Exported {rows} reviews to {args.output}")
    else:
        print(csv_text)
    return 0


def cmd_check_config(args):
    """Validate lexicons and scoring configuration."""
    try:
        lexicons = load_lexicons(args.lexicons or get_settings().paths.lexicon_path)
        DEFAULT_CONFIG.validate()
        AnalysisPipeline(lexicons=lexicons, workers=1)
    except ConfigurationError as e:
        print(f"✗ Configuration invalid: {e}")
        return 1

    print("✓ Configuration valid")
    print(f"  Languages: {', '.join(lexicons.languages)}")
    print(f"  Themes: {', '.join(lexicons.categories)}")
    print(f"  Sentiment overrides: {len(lexicons.sentiment_lexicon)}")
    print(f"  Negative clues: {len(lexicons.negative_clues)}")
    print(f"  Feature request triggers: {len(lexicons.feature_request_triggers)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sessionpulse",
        description="SessionPulse review analysis CLI",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Run the full analysis")
    analyze_parser.add_argument(
        "--input",
        help="Reviews file (.json, .jsonl or .csv)",
    )
    analyze_parser.add_argument(
        "--output-dir",
        help="Directory for sessions_analysis.json and enriched_reviews.json",
    )
    analyze_parser.add_argument(
        "--lexicons",
        help="Lexicon JSON file (default: bundled lexicons)",
    )
    analyze_parser.add_argument(
        "--workers",
        type=int,
        help="Worker threads for enrichment and aggregation",
    )

    # rank command
    rank_parser = subparsers.add_parser("rank", help="List and sort sessions")
    rank_parser.add_argument(
        "--analysis",
        help="sessions_analysis.json to read",
    )
    rank_parser.add_argument(
        "--status",
        choices=["problematic", "mixed", "successful"],
        help="Only show sessions with this status",
    )
    rank_parser.add_argument(
        "--search",
        help="Only sessions whose title or id contains this text",
    )
    rank_parser.add_argument(
        "--sort",
        choices=SORT_KEYS,
        default="attention_score",
        help="Sort column (default: attention_score)",
    )
    rank_parser.add_argument(
        "--dir",
        choices=SORT_DIRECTIONS,
        default="desc",
        help="Sort direction (default: desc)",
    )
    rank_parser.add_argument(
        "--limit",
        type=int,
        help="Maximum sessions to show",
    )
    rank_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    # export command
    export_parser = subparsers.add_parser("export", help="Export reviews as CSV")
    export_parser.add_argument(
        "--analysis",
        help="sessions_analysis.json to read",
    )
    export_parser.add_argument(
        "--sentiment",
        choices=["positive", "neutral", "negative"],
        help="Only export reviews with this label",
    )
    export_parser.add_argument(
        "--output",
        help="Write to this file instead of stdout",
    )

    # check-config command
    check_parser = subparsers.add_parser("check-config", help="Validate configuration")
    check_parser.add_argument(
        "--lexicons",
        help="Lexicon JSON file to validate",
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValueError as e:
        print(f"ERROR: Invalid settings: {e}")
        return 1

    setup_logging(
        level="DEBUG" if args.verbose else settings.logging.level,
        json_output=args.json_logs or settings.logging.json_logs,
        log_file=settings.logging.log_file,
    )

    if args.command is None:
        parser.print_help()
        return 1

    # Dispatch to command handler
    commands = {
        "analyze": cmd_analyze,
        "rank": cmd_rank,
        "export": cmd_export,
        "check-config": cmd_check_config,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
