"""Main entry point for taintgate."""

import argparse
import json
import logging
import sys
from pathlib import Path

import uvicorn

from .config import create_default_config, get_config, get_config_path, load_config
from .hooks import ToolCallContext, ToolCallGuard
from .server import create_app
from .sessions import SessionRegistry
from .taint.shell import ShellRestrictionEngine
from .taint.url_trust import TrustClassifier
from .tiers import RestrictionTier

REPLAY_SESSION = "replay"


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for taintgate."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load(args: argparse.Namespace):
    if args.config:
        return load_config(Path(args.config))
    return get_config()


def run_server(args: argparse.Namespace) -> None:
    """Run the HTTP hook service."""
    config = _load(args)

    port = args.port or config.server.port
    host = args.host or config.server.host

    print(f"Starting taintgate hook service on http://{host}:{port}")
    print(f"Configuration: {args.config or get_config_path()}")
    print()

    app = create_app(config)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=config.global_.log_level.lower(),
    )


def init_config(args: argparse.Namespace) -> None:
    """Initialize the configuration file."""
    config_path = create_default_config(Path(args.config) if args.config else None)
    print(f"Configuration file created at: {config_path}")


def classify_url(args: argparse.Namespace) -> None:
    """Print the trust verdict for a URL."""
    config = _load(args)
    check = TrustClassifier(config.trusted_urls.patterns).check_url(args.url)

    if check.malformed:
        print(f"UNTRUSTED  {args.url} (could not extract a domain)")
        sys.exit(1)
    if check.trusted:
        print(f"TRUSTED    {check.domain} (pattern: {check.matched_pattern})")
        return
    print(f"UNTRUSTED  {check.domain}")
    sys.exit(1)


def evaluate_command(args: argparse.Namespace) -> None:
    """Print the decision for a shell command under a tier."""
    config = _load(args)
    engine = ShellRestrictionEngine(config.shell_restrictions)
    decision = engine.evaluate(args.shell_command, RestrictionTier(args.tier))

    if decision.allowed:
        print(f"ALLOWED ({args.tier})")
        return
    print(f"BLOCKED ({args.tier}): {decision.reason}")
    sys.exit(1)


def replay_calls(args: argparse.Namespace) -> None:
    """Feed a JSON-lines file of tool calls through a single session."""
    config = _load(args)
    registry = SessionRegistry(config.taint)
    guard = ToolCallGuard(config, registry)

    with open(args.file) as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                call = json.loads(line)
            except json.JSONDecodeError as e:
                print(f"{line_no:>4}  SKIPPED  invalid JSON: {e}")
                continue
            if not isinstance(call, dict):
                print(f"{line_no:>4}  SKIPPED  expected a JSON object")
                continue

            tool_name = call.get("tool_name") or call.get("tool") or "unknown"
            result = guard.before_tool_call(
                ToolCallContext(tool_name, call.get("tool_input") or {}, REPLAY_SESSION)
            )
            tracker = registry.get(REPLAY_SESSION)
            verdict = "BLOCK" if result.block else "allow"
            print(
                f"{line_no:>4}  {verdict:<5}  {tool_name:<16} "
                f"taint={tracker.current_level():>3} tier={tracker.current_tier().value}"
            )
            if result.block:
                print(f"      {result.block_reason}")

    tracker = registry.get(REPLAY_SESSION)
    print()
    print(f"Final taint level: {tracker.current_level()} ({tracker.current_tier().value})")
    print(f"Taint events: {len(tracker.history())}")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="taintgate - Trust-based shell command gating for autonomous agents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  taintgate init                          # Write the default config
  taintgate serve                         # Run the HTTP hook service
  taintgate classify https://docs.github.com
  taintgate evaluate "rm -rf ./build" --tier cautious
  taintgate replay calls.jsonl            # Replay recorded tool calls
        """,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument("-c", "--config", help="Path to a config file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP hook service")
    serve_parser.add_argument("--host", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, help="Port to listen on")

    subparsers.add_parser("init", help="Initialize configuration")

    classify_parser = subparsers.add_parser("classify", help="Check whether a URL is trusted")
    classify_parser.add_argument("url", help="URL or bare domain")

    evaluate_parser = subparsers.add_parser("evaluate", help="Check a shell command under a tier")
    evaluate_parser.add_argument("shell_command", metavar="COMMAND", help="Shell command text")
    evaluate_parser.add_argument(
        "--tier",
        choices=[t.value for t in RestrictionTier],
        default=RestrictionTier.PERMISSIVE.value,
        help="Restriction tier (default: permissive)",
    )

    replay_parser = subparsers.add_parser("replay", help="Replay a JSON-lines file of tool calls")
    replay_parser.add_argument("file", help="File with one {tool_name, tool_input} object per line")

    args = parser.parse_args()

    log_level = "DEBUG" if args.verbose else "WARNING"
    setup_logging(log_level)

    try:
        if args.command == "serve":
            run_server(args)
        elif args.command == "init":
            init_config(args)
        elif args.command == "classify":
            classify_url(args)
        elif args.command == "evaluate":
            evaluate_command(args)
        elif args.command == "replay":
            replay_calls(args)
        else:
            parser.print_help()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
