# src/main.py - v2
"""CLI entry point - analyze and plan commands.

Usage:
    dealscope analyze <transcript.json> [-o result.json] [--metrics metrics.json]
    dealscope plan [--mermaid]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dealscope.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="dealscope",
        description=f"dealscope v{__version__} - Multi-agent sales conversation analyzer",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- analyze ---
    p_analyze = subparsers.add_parser(
        "analyze", help="Analyze a transcript JSON file",
    )
    p_analyze.add_argument("file", type=Path, help="Path to transcript JSON")
    p_analyze.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the AnalysisResult JSON here (default: stdout)",
    )
    p_analyze.add_argument(
        "--metrics", type=Path, default=None,
        help="Write run metrics JSON here",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- plan ---
    p_plan = subparsers.add_parser(
        "plan", help="Print the execution waves of the configured agents",
    )
    p_plan.add_argument(
        "--mermaid", action="store_true",
        help="Also print a mermaid dependency diagram",
    )
    p_plan.set_defaults(func=_cmd_plan)

    return parser


async def _cmd_analyze(args: argparse.Namespace) -> int:
    """Execute single-conversation analysis."""
    from dealscope.api.models import AnalysisRequest
    from dealscope.pipeline.errors import AnalysisFailedError
    from dealscope.pipeline.orchestrator import AnalysisOrchestrator
    from dealscope.tracking.exporter import export_metrics_json

    file_path: Path = args.file
    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        return 1

    request = AnalysisRequest.from_file(file_path)
    orchestrator = AnalysisOrchestrator()

    logger.info("Analyzing %s (%d segments)", file_path.name, len(request.transcript))
    try:
        result = await orchestrator.analyze(request.transcript, request.metadata)
    except AnalysisFailedError as exc:
        logger.error("Analysis failed: %s", exc)
        return 2

    payload = result.model_dump_json(indent=2)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload, encoding="utf-8")
        _print_result_summary(result)
    else:
        print(payload)

    if args.metrics is not None:
        export_metrics_json(orchestrator.monitor, args.metrics)

    return 0 if result.status == "complete" else 3


async def _cmd_plan(args: argparse.Namespace) -> int:
    """Print waves for the configured registry."""
    from dealscope.config.settings import load_settings
    from dealscope.pipeline.dag_builder import build_dag
    from dealscope.pipeline.registry import build_default_registry

    registry = build_default_registry(load_settings())
    plan = build_dag(registry.get_dependency_map(), registry.get_priorities())

    print(registry.summary())
    print(f"\nExecution plan ({len(plan.stages)} waves):")
    for i, stage in enumerate(plan.stages):
        print(f"  Wave {i}: {', '.join(stage)}")
    if args.mermaid:
        print()
        print(registry.to_mermaid())
    return 0


def _print_result_summary(result: object) -> None:
    """Print a human-readable summary of AnalysisResult."""
    print("\nAnalysis complete:")
    print(f"  Analysis ID:  {result.analysis_id}")
    print(f"  Status:       {result.status}")
    print(f"  Sections:     {', '.join(result.sections) or '-'}")
    failed = result.failed_agents + result.timed_out_agents
    if failed:
        print(f"  Failed:       {', '.join(failed)}")
    if result.degraded_sections:
        print(f"  Degraded:     {', '.join(result.degraded_sections)}")
    print(f"  Duration:     {result.duration_s:.1f}s ({result.parallelism_ratio:.2f}x parallel)")


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from dealscope.config.settings import load_settings
    from dealscope.logging.logger import setup_logging

    settings = load_settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format="text",
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=sys.stderr,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
