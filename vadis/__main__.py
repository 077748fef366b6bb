"""
Vadis Main Entry Point

    python -m vadis analyze SCRIPT [--offline] [--output results.json]
    python -m vadis serve [--host 0.0.0.0] [--port 8000]
"""

import sys
import json
import asyncio
import argparse
from pathlib import Path

from vadis.core.logging_config import LogLevel, setup_logging, get_logger, create_session_log, parse_log_level
from vadis.core.config import load_config
from vadis.core.startup import validate_environment


def main():
    """Main entry point for the Vadis command line."""
    parser = argparse.ArgumentParser(
        description="Vadis - Screenplay analysis for film pre-production"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to configuration file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )

    parser.add_argument(
        "--log-dir",
        type=str,
        help="Also write a timestamped session log to this directory"
    )

    parser.add_argument(
        "--skip-validation",
        action="store_true",
        help="Skip API key validation at startup"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a screenplay file")
    analyze_parser.add_argument("script", type=str, help="Path to the screenplay text file")
    analyze_parser.add_argument("--title", type=str, help="Project title (default: file name)")
    analyze_parser.add_argument(
        "--offline",
        action="store_true",
        help="Disable generation; stages use their fallbacks"
    )
    analyze_parser.add_argument("--output", "-o", type=str, help="Write results as JSON to this file")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", type=str, help="Bind address (default: settings)")
    serve_parser.add_argument("--port", type=int, help="Port for the API server (default: settings)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    args = parser.parse_args()

    # Setup logging
    if args.debug:
        log_level = LogLevel.DEBUG
    elif args.verbose:
        log_level = LogLevel.INFO
    elif args.command == "serve":
        from vadis.core.settings import get_settings
        log_level = parse_log_level(get_settings().log_level)
    else:
        log_level = LogLevel.WARNING

    if args.log_dir:
        log_file = create_session_log(Path(args.log_dir), prefix=args.command, level=log_level, verbose=args.verbose)
    else:
        log_file = None
        setup_logging(level=log_level, verbose=args.verbose)

    logger = get_logger("main")
    if log_file:
        logger.info(f"Session log: {log_file}")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path)
    if getattr(args, "offline", False):
        config.offline = True

    # Validate environment (API keys, etc.)
    if not args.skip_validation:
        validation_result = validate_environment(config)
        if not validation_result.valid:
            logger.error("Environment validation failed:")
            for error in validation_result.errors:
                logger.error(f"  - {error}")
            print("\nEnvironment validation failed. Missing provider credentials:")
            for error in validation_result.errors:
                print(f"  x {error}")
            print("\nRun with --offline to analyze without generation, or --skip-validation to bypass")
            sys.exit(1)

        for warning in validation_result.warnings:
            logger.warning(warning)

    if args.command == "analyze":
        sys.exit(run_analyze(args, config))
    run_serve(args)


def run_analyze(args, config) -> int:
    """Analyze one script against an in-memory store and print the results."""
    from vadis.llm.generation_client import GenerationClient
    from vadis.pipelines.analysis_pipeline import ScriptAnalysisPipeline
    from vadis.storage import MemoryStore

    logger = get_logger("main")

    script_path = Path(args.script)
    if not script_path.exists():
        print(f"Script not found: {script_path}")
        return 1
    script_text = script_path.read_text(encoding="utf-8", errors="replace")

    async def analyze():
        store = MemoryStore()
        pipeline = ScriptAnalysisPipeline(GenerationClient(config), store)
        pipeline.set_progress_callback(
            lambda p: logger.info(f"[{p['current']}/{p['total']}] {p['step']}")
        )
        project = await pipeline.repository.create_project(args.title or script_path.stem, script_text)
        return await pipeline.analyze(project["id"])

    result = asyncio.run(analyze())

    if not result.success:
        print(f"Analysis failed: {result.error}")
        if result.metadata.get("failed_step"):
            print(f"  stage: {result.metadata['failed_step']}")
        return 1

    output = result.output.to_dict()
    if args.output:
        Path(args.output).write_text(json.dumps(output, indent=2), encoding="utf-8")
        print(f"Results written to {args.output}")
    else:
        print(json.dumps(output, indent=2))

    logger.info(f"Analysis finished in {result.duration_seconds:.1f}s")
    return 0


def run_serve(args):
    """Run the FastAPI backend."""
    from vadis.core.settings import get_settings
    from vadis.api.main import start_server

    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port

    print(f"Starting Vadis API on http://{host}:{port}")
    start_server(host=host, port=port, reload=args.reload)


if __name__ == "__main__":
    main()
