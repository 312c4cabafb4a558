"""Command-line interface for the crawler."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .cancel import CancellationToken
from .config import CrawlSettings, load_settings_from_env
from .errors import InputError
from .orchestrator import CrawlOrchestrator
from .state import CrawlRunState

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "webbot"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def _load_config(cwd: Optional[Path] = None) -> Optional[Path]:
    """Load .env configuration with fallback to the user config directory.

    Search order:
    1. .env in current working directory
    2. ~/.config/webbot/.env
    """
    local_env = (cwd or Path.cwd()) / ".env"
    if local_env.is_file():
        load_dotenv(local_env)
        return local_env

    if CONFIG_ENV_FILE.is_file():
        load_dotenv(CONFIG_ENV_FILE)
        return CONFIG_ENV_FILE

    return None


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="webbot",
        description=(
            "Crawl a seed URL, follow its links and probe anything that "
            "looks like a database endpoint."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Crawl with default settings
  webbot https://example.com

  # Slower crawl with a custom output file
  webbot https://example.com --delay 2 --output out/elements.json

  # Probe each endpoint once and follow relative links too
  webbot https://example.com --dedupe-endpoints --resolve-relative

Settings can also come from WEBBOT_* environment variables or a .env file.
""",
    )

    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="Seed URL to crawl (absolute http/https)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to wait after each link/endpoint request (default: 1.0)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum requests in flight while following links (default: 1)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: 30)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        dest="output_path",
        default=None,
        help="JSON file for the seed page's elements (default: web_bot_output.json)",
    )
    parser.add_argument(
        "--error-log",
        type=str,
        dest="error_log_path",
        default=None,
        help="Append-only error log (default: web_bot_error_log.txt)",
    )
    parser.add_argument(
        "--endpoint-pattern",
        type=str,
        default=None,
        help="Case-insensitive regex marking endpoint candidates (default: /database/)",
    )
    parser.add_argument(
        "--dedupe-endpoints",
        action="store_true",
        default=None,
        help="Probe each endpoint once instead of once per discovery",
    )
    parser.add_argument(
        "--resolve-relative",
        action="store_true",
        default=None,
        help="Resolve relative links and endpoints instead of dropping them",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Retries per request on transport errors and 429/5xx (default: 0)",
    )
    parser.add_argument(
        "--run-timeout",
        type=float,
        default=None,
        help="Cancel the whole run after this many seconds",
    )
    parser.add_argument(
        "--user-agent",
        type=str,
        default=None,
        help="Fixed User-Agent (default: random desktop browser)",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a JSON run summary to stdout",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def _build_settings(args: argparse.Namespace) -> CrawlSettings:
    return load_settings_from_env().with_overrides(
        delay=args.delay,
        concurrency=args.concurrency,
        timeout=args.timeout,
        output_path=args.output_path,
        error_log_path=args.error_log_path,
        endpoint_pattern=args.endpoint_pattern,
        dedupe_endpoints=args.dedupe_endpoints,
        resolve_relative=args.resolve_relative,
        max_retries=args.max_retries,
        run_timeout=args.run_timeout,
        user_agent=args.user_agent,
    )


def _install_signal_handlers(token: CancellationToken) -> List[int]:
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, token.cancel, f"received {sig.name}")
        except (NotImplementedError, RuntimeError, ValueError):
            continue
        installed.append(sig)
    return installed


async def _run_crawl_async(url: str, settings: CrawlSettings) -> CrawlRunState:
    """Main async entry point for a crawl run."""
    token = CancellationToken()
    installed = _install_signal_handlers(token)
    try:
        orchestrator = CrawlOrchestrator(settings, token=token)
        logging.info("Starting crawl: %s", url)
        return await orchestrator.run(url)
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)


def _exit_code(state: CrawlRunState) -> int:
    if state.completed:
        return EXIT_OK
    if state.cancelled:
        return EXIT_CANCELLED
    return EXIT_FAILURE


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the webbot command."""
    args = parse_args(argv)
    _setup_logging(args.verbose)
    _load_config()

    if not args.url:
        logging.error("Please provide a URL as a command-line argument.")
        return EXIT_FAILURE

    try:
        settings = _build_settings(args)
        state = asyncio.run(_run_crawl_async(args.url, settings))
    except InputError as exc:
        logging.error("%s", exc)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return EXIT_CANCELLED

    if args.summary:
        print(json.dumps(state.summary(), indent=2, ensure_ascii=False))

    return _exit_code(state)


if __name__ == "__main__":
    sys.exit(main())
