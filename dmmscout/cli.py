#!/usr/bin/env python3
"""
cli.py - Entry point for dmmscout
Look up a DMM/FANZA catalog item by id or detail link, or search by keyword.
"""

try:
    import asyncio
    import sys
    import argparse
    import json
    import time
    from pathlib import Path
    from rich.console import Console
    from rich.table import Table
    from typing import Any, Optional, Sequence
    import dmmscout as pkg
    from . import logger
    from .config import ScoutConfig, default_config, load_config
    from .logger import ScoutLogger
    from .provider.dmm import DMMProvider
    from .provider.errors import FetchError, InvalidLinkError, MovieNotFoundError, SearchParseError
    from .provider.types import MovieInfo, SearchResult
except ImportError as e:
    print(f"Error: Missing required dependency: {e}")
    print("Please install required dependencies: pip install -e .")
    sys.exit(1)

console = Console()
_CLI_SESSION_START_MONOTONIC = time.monotonic()

# Record fields shown in the detail table, in display order.
DETAIL_FIELDS: tuple[tuple[str, str], ...] = (
    ("number", "Number"),
    ("id", "CID"),
    ("title", "Title"),
    ("release_date", "Released"),
    ("duration", "Duration"),
    ("actors", "Actors"),
    ("director", "Director"),
    ("maker", "Maker"),
    ("publisher", "Label"),
    ("series", "Series"),
    ("tags", "Genres"),
    ("score", "Score"),
    ("homepage", "Homepage"),
    ("thumb_url", "Thumb"),
    ("cover_url", "Cover"),
    ("preview_video_url", "Preview video"),
    ("preview_images", "Preview images"),
    ("summary", "Summary"),
)


def _ui_info(message: str) -> None:
    console.print(f"[cyan][INFO][/cyan] {message}")


def _ui_warn(message: str) -> None:
    console.print(f"[yellow][WARNING][/yellow] {message}")


def _ui_error(message: str) -> None:
    console.print(f"[red][ERROR][/red] {message}")


def _reset_cli_session_timer() -> None:
    global _CLI_SESSION_START_MONOTONIC
    _CLI_SESSION_START_MONOTONIC = time.monotonic()


def _format_elapsed_runtime(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3_600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3_600:.1f}h"


def _ui_goodbye_with_elapsed() -> None:
    elapsed = max(0.0, time.monotonic() - _CLI_SESSION_START_MONOTONIC)
    _ui_info(f"Goodbye! Elapsed {_format_elapsed_runtime(elapsed)}")


def _is_link(target: str) -> bool:
    return target.startswith(("http://", "https://", "//")) or "/cid=" in target


def _format_value(key: str, value: Any) -> str:
    if value in (None, "", [], 0, 0.0):
        return "-"
    if isinstance(value, list):
        return "\n".join(value) if key == "preview_images" else ", ".join(value)
    if key == "duration":
        return f"{value} min"
    return str(value)


def render_movie_info(info: MovieInfo) -> Table:
    data = info.to_dict()
    table = Table(title=info.number or info.id, show_header=False, expand=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")
    for key, label in DETAIL_FIELDS:
        table.add_row(label, _format_value(key, data.get(key)))
    return table


def render_search_results(keyword: str, results: Sequence[SearchResult]) -> Table:
    table = Table(title=f"Search: {keyword}", expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Number", style="cyan", no_wrap=True)
    table.add_column("CID", no_wrap=True)
    table.add_column("Title", overflow="fold")
    table.add_column("Score", justify="right")
    for index, result in enumerate(results, start=1):
        table.add_row(
            str(index),
            result.number or "-",
            result.id,
            result.title or "-",
            f"{result.score:.1f}" if result.score else "-",
        )
    return table


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def run_lookup(config: ScoutConfig, target: str, *, as_json: bool = False) -> int:
    """Resolve one catalog item and print it. Returns the process exit code."""
    provider = DMMProvider(config)
    try:
        if _is_link(target):
            info = await provider.get_movie_info_by_link(target)
            if not info.is_valid():
                _ui_error(f"No usable metadata at {target}")
                return 1
        else:
            info = await provider.get_movie_info_by_id(target)
    except (MovieNotFoundError, InvalidLinkError, FetchError) as exc:
        _ui_error(str(exc))
        return 1

    if as_json:
        _print_json(info.to_dict())
    else:
        console.print(render_movie_info(info))
    return 0


async def run_search(config: ScoutConfig, keyword: str, *, as_json: bool = False) -> int:
    provider = DMMProvider(config)
    try:
        results = await provider.search_movie(keyword)
    except (SearchParseError, FetchError) as exc:
        _ui_error(str(exc))
        return 1

    if as_json:
        _print_json([result.to_dict() for result in results])
    elif not results:
        _ui_warn(f"No results for '{keyword}'")
    else:
        console.print(render_search_results(keyword, results))
    return 0


def resolve_config_path(args_config: Optional[str]) -> Optional[Path]:
    """Explicit path (file or directory), then ./config.toml, then the checkout root."""
    if args_config:
        p = Path(args_config).expanduser()
        if p.is_dir():
            p = p / "config.toml"
        return p

    cwd_candidate = Path.cwd() / "config.toml"
    if cwd_candidate.exists():
        return cwd_candidate

    repo_root = Path(__file__).resolve().parent.parent
    root_candidate = repo_root / "config.toml"
    if root_candidate.exists() and (
        (repo_root / ".git").exists() or (repo_root / "pyproject.toml").exists()
    ):
        return root_candidate
    return None


def show_help(parser: argparse.ArgumentParser) -> None:
    print(f"dmmscout v{getattr(pkg, '__version__', '0.0.0')} - DMM/FANZA catalog metadata lookup")
    print()
    parser.print_help()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dmmscout", add_help=False)
    for args, kwargs in (
        (("-h", "--help"), {"action": "store_true", "help": "Show help"}),
        (("-s", "--search"), {"action": "store_true", "help": "Treat TARGET as a search keyword"}),
        (("-c", "--config"), {"metavar": "PATH", "help": "Path to config.toml (file or directory)"}),
        (("-d", "--debug"), {"action": "store_true", "help": "Debug mode with page fetches and timestamps"}),
        (("-l", "--log-file"), {"metavar": "PATH", "help": "Also write log output to PATH"}),
        (("--json",), {"action": "store_true", "help": "Print JSON instead of a table"}),
    ):
        parser.add_argument(*args, **kwargs)
    parser.add_argument("target", nargs="?", help="Catalog id, detail URL, or search keyword")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point"""
    _reset_cli_session_timer()
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
        if args.help or not args.target:
            show_help(parser)
            sys.exit(0)

        config_path = resolve_config_path(args.config)
        config = load_config(config_path) if config_path is not None else default_config()

        log_file = Path(args.log_file).expanduser() if args.log_file else None
        with ScoutLogger(log_file=log_file, debug=args.debug) as scout_logger:
            logger.set_logger(scout_logger)
            if config.config_path:
                logger.debug(f"Loaded configuration from {config.config_path}")
            if args.search:
                code = asyncio.run(run_search(config, args.target, as_json=args.json))
            else:
                code = asyncio.run(run_lookup(config, args.target, as_json=args.json))
        sys.exit(code)
    except KeyboardInterrupt:
        _ui_goodbye_with_elapsed()
        sys.exit(0)
    except Exception as e:
        _ui_error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
