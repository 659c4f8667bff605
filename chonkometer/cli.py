"""
chonkometer CLI - Do token cost cua mot MCP server.

    chonkometer [--json] [--timeout SECONDS] [--workers N] [--debug] command [args...]

Moi thu sau `command` duoc chuyen nguyen cho server process
(vd: `chonkometer npx -y @modelcontextprotocol/server-everything`).
"""

import argparse
import signal
import sys
from typing import List, Optional

from chonkometer import __version__
from chonkometer.config import paths
from chonkometer.config.estimators import build_estimator
from chonkometer.core.aggregation import aggregate
from chonkometer.core.cancellation import CancellationToken
from chonkometer.core.errors import ChonkometerError
from chonkometer.core.logging_config import (
    flush_logs,
    log_debug,
    log_info,
    set_debug_mode,
)
from chonkometer.core.mcp.fetcher import fetch_definitions
from chonkometer.services.encoder_registry import get_tokenizer
from chonkometer.services.report_service import render_json, render_text
from chonkometer.services.settings_manager import load_app_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chonkometer",
        description="Measure the token cost of an MCP server's tools, prompts and resources",
    )
    parser.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Abort the whole run after SECONDS (default: from settings, 0 = none)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="N",
        help="Count tokens with N worker threads",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging on stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", help="MCP server executable")
    parser.add_argument(
        "args", nargs=argparse.REMAINDER, help="Arguments passed to the server"
    )
    return parser


def _install_interrupt_handler(token: CancellationToken) -> None:
    def _on_signal(signum, frame):
        token.cancel("interrupted")

    signal.signal(signal.SIGINT, _on_signal)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _on_signal)


def run(argv: Optional[List[str]] = None, handle_signals: bool = False) -> int:
    """
    Chay mot lan do va in report ra stdout.

    Args:
        argv: Command line (khong gom program name); None = sys.argv[1:]
        handle_signals: Ctrl+C / SIGTERM cancel run thay vi KeyboardInterrupt

    Returns:
        Exit status: 0 thanh cong, 1 loi fatal
    """
    options = build_parser().parse_args(argv)

    if options.debug or paths.DEBUG_MODE:
        set_debug_mode(True)

    settings = load_app_settings()
    if options.timeout is not None:
        settings.overall_timeout = options.timeout
    if options.workers is not None:
        settings.max_workers = max(1, options.workers)
    log_debug(f"[CLI] Settings: {settings.to_dict()}")

    try:
        estimator = build_estimator(settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    cancel_token = CancellationToken.with_timeout(settings.overall_timeout)
    if handle_signals:
        _install_interrupt_handler(cancel_token)

    try:
        # Vocabulary load truoc khi spawn server: loi init khong de lai process
        tokenizer = get_tokenizer(settings.encoding_name, settings.allow_special_tokens)

        log_debug(f"[CLI] Launching {options.command} {' '.join(options.args)}")
        result = fetch_definitions(
            options.command,
            options.args,
            settings=settings,
            cancel_token=cancel_token,
        )

        if options.json:
            output = render_json(result, tokenizer.count)
        else:
            aggregation = aggregate(
                result,
                tokenizer.count,
                estimator=estimator,
                max_workers=settings.max_workers,
            )
            output = render_text(result.server, aggregation, estimator)
    except ChonkometerError as e:
        log_info(f"[CLI] Run failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        flush_logs()

    print(output)
    return 0


def main() -> None:
    sys.exit(run(handle_signals=True))
