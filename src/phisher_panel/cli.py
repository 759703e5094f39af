"""
Command-line interface for the phisher panel.

Every command opens a headless panel, performs the same actions a user would
perform in it and prints the outcome:
- analyze: Analyze a single URL
- whitelist / blacklist: List, add or remove domains
- history: List, export or clear past analyses
- stats: Show the local counters
- render: Print the markup of a view
- config: Configuration management
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .app import PhisherPanel
from .audit_logger import AuditLogger
from .config import (
    DEFAULT_STATE_DIR,
    ApiConfig,
    CacheConfig,
    LoggingConfig,
    PanelConfig,
    StorageConfig,
    apply_env_overrides,
)
from .enums import ExportFormat, HistoryFilter, RiskLevel, View
from .i18n import get_message
from .managers import Confirm
from .risk import format_timestamp, result_recommendation, result_title, risk_level


DEFAULT_CONFIG_PATH = DEFAULT_STATE_DIR / "config.json"


def create_default_config(
    simulation_mode: bool = False,
    language: str = "en",
    state_dir: Optional[Path] = None,
    hmac_secret: str = "default-secret-change-me",
) -> PanelConfig:
    """
    Create a default panel configuration.

    Args:
        simulation_mode: Answer remote calls locally instead of over the network
        language: Output language ('en' or 'de')
        state_dir: Directory holding the local and sync state files
        hmac_secret: Secret for HMAC protection of stored state

    Returns:
        PanelConfig with default settings
    """
    return PanelConfig(
        api=ApiConfig(),
        storage=StorageConfig(
            state_dir=state_dir or DEFAULT_STATE_DIR,
            hmac_secret=hmac_secret,
        ),
        cache=CacheConfig(),
        logging=LoggingConfig(level="info", output_format="text"),
        language=language,
        simulation_mode=simulation_mode,
    )


def load_config_from_file(config_path: Path) -> Optional[PanelConfig]:
    """
    Load configuration from a JSON file.

    Missing sections and keys take their default values.

    Args:
        config_path: Path to the configuration file

    Returns:
        PanelConfig if successful, None otherwise
    """
    defaults = PanelConfig()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        api_data = data.get("api", {})
        api = ApiConfig(
            base_url=api_data.get("base_url", defaults.api.base_url).rstrip("/"),
            list_prefix=api_data.get("list_prefix", defaults.api.list_prefix),
            timeout_seconds=float(api_data.get("timeout_seconds", defaults.api.timeout_seconds)),
            user_agent=api_data.get("user_agent", defaults.api.user_agent),
        )

        storage_data = data.get("storage", {})
        state_dir = storage_data.get("state_dir")
        storage = StorageConfig(
            state_dir=Path(state_dir).expanduser() if state_dir else DEFAULT_STATE_DIR,
            hmac_secret=storage_data.get("hmac_secret", defaults.storage.hmac_secret),
        )

        cache_data = data.get("cache", {})
        capacity = int(cache_data.get("capacity", defaults.cache.capacity))
        if capacity < 1:
            raise ValueError("cache.capacity must be at least 1")

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        )

        language = data.get("language", "en")
        if language not in ("en", "de"):
            raise ValueError(f"unsupported language '{language}'")

        downloads_dir = data.get("downloads_dir")
        return PanelConfig(
            api=api,
            storage=storage,
            cache=CacheConfig(capacity=capacity),
            logging=logging_config,
            language=language,
            simulation_mode=bool(data.get("simulation_mode", False)),
            downloads_dir=Path(downloads_dir).expanduser() if downloads_dir else defaults.downloads_dir,
            report_url=data.get("report_url", defaults.report_url),
            help_url=data.get("help_url", defaults.help_url),
        )

    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None


def save_config_to_file(config: PanelConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Args:
        config: PanelConfig to save
        config_path: Path to save the configuration

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "api": {
                "base_url": config.api.base_url,
                "list_prefix": config.api.list_prefix,
                "timeout_seconds": config.api.timeout_seconds,
                "user_agent": config.api.user_agent,
            },
            "storage": {
                "state_dir": str(config.storage.state_dir),
                "hmac_secret": config.storage.hmac_secret,
            },
            "cache": {
                "capacity": config.cache.capacity,
            },
            "logging": {
                "level": config.logging.level,
                "output_format": config.logging.output_format,
            },
            "language": config.language,
            "simulation_mode": config.simulation_mode,
            "downloads_dir": str(config.downloads_dir),
            "report_url": config.report_url,
            "help_url": config.help_url,
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def resolve_config(args: argparse.Namespace) -> Optional[PanelConfig]:
    """
    Build the effective configuration for a command.

    File (or defaults), then environment overrides, then command line flags.
    """
    config = None
    if args.config:
        config = load_config_from_file(Path(args.config))
        if config is None:
            print(f"Error: Could not load config from {args.config}", file=sys.stderr)
            return None
    if config is None:
        config = create_default_config()

    config = apply_env_overrides(config)
    if args.dry_run:
        config.simulation_mode = True
    if args.language:
        config.language = args.language
    return config


def prompt_confirm(assume_yes: bool) -> Confirm:
    """Confirmation callback answering from ``--yes`` or the terminal."""

    def confirm(prompt: str) -> bool:
        if assume_yes:
            return True
        try:
            answer = input(f"{prompt} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes", "j", "ja")

    return confirm


def create_panel(
    config: PanelConfig,
    verbose: bool = False,
    confirm: Optional[Confirm] = None,
) -> PhisherPanel:
    logger = None
    if verbose:
        logger = AuditLogger.from_config("debug", config.logging.output_format)
    if confirm is None:
        confirm = prompt_confirm(False)
    return PhisherPanel(config, logger=logger, confirm=confirm, opener=print)


def _print_notice(config: PanelConfig) -> None:
    if config.simulation_mode:
        print(get_message("cli.simulation", config.language))


async def analyze_url(url: str, config: PanelConfig, verbose: bool = False) -> int:
    """
    Analyze a URL through the main view.

    Returns:
        Exit code (0 for safe or suspicious, 2 for a detected threat,
        1 for invalid input or a failed analysis)
    """
    language = config.language
    _print_notice(config)
    print(get_message("cli.analyzing", language, url=url))

    async with create_panel(config, verbose) as panel:
        result = await panel.analyze(url)
        if result is None:
            doc = panel.document
            message = doc.text(doc.by_id("inputMessage")) or get_message("analysis.failed", language)
            print(f"Error: {message}", file=sys.stderr)
            return 1

        level = risk_level(result.risk_score)
        print(result_title(result, language))
        print(get_message("cli.risk", language, score=result.risk_score, level=level.value))
        doc = panel.document
        print(f"  Confidence: {doc.text(doc.by_id('confidenceScore'))}")
        for threat in result.threats:
            print(f"  - {threat}")
        print(result_recommendation(result, language))

        if verbose:
            stats = panel.stats.stats
            print(get_message(
                "cli.stats", language,
                total=stats.total_checks, threats=stats.threats_blocked, safe=stats.safe_urls,
            ))

    if result.is_phishing or level == RiskLevel.DANGER:
        return 2
    return 0


async def manage_domain_list(
    view: View,
    action: str,
    domain: Optional[str],
    config: PanelConfig,
    verbose: bool = False,
    assume_yes: bool = False,
) -> int:
    """List, add or remove entries of the whitelist or blacklist view."""
    list_name = view.value
    _print_notice(config)

    async with create_panel(config, verbose, prompt_confirm(assume_yes)) as panel:
        await panel.navigate(view)
        manager = panel.whitelist if view == View.WHITELIST else panel.blacklist
        doc = panel.document

        if action == "list":
            names = [doc.text(node) for node in doc.select(f".{list_name}-item .domain-name")]
            for name in names:
                print(name)
            if not names:
                notice = doc.select_one(f".{manager.empty_class}, .{manager.error_class}")
                print(doc.text(notice))
                return 1 if notice is not None and manager.error_class in notice.get("class", []) else 0
            return 0

        if not domain:
            print(f"Error: '{list_name} {action}' requires a domain", file=sys.stderr)
            return 1

        if action == "add":
            doc.type_text(f"{list_name}Input", domain)
            ok = await manager.add()
        else:
            ok = await manager.remove(domain)

        message = doc.select_one(f".{list_name}-message")
        if message is not None:
            print(doc.text(message), file=sys.stdout if ok else sys.stderr)
        return 0 if ok else 1


async def manage_history(
    action: str,
    config: PanelConfig,
    history_filter: Optional[str] = None,
    limit: Optional[int] = None,
    export_format: str = "csv",
    output_dir: Optional[Path] = None,
    verbose: bool = False,
    assume_yes: bool = False,
) -> int:
    """List, export or clear the history view."""
    language = config.language
    _print_notice(config)
    if output_dir is not None:
        config.downloads_dir = output_dir

    async with create_panel(config, verbose, prompt_confirm(assume_yes)) as panel:
        await panel.navigate(View.HISTORY)
        doc = panel.document

        if history_filter or limit:
            if history_filter:
                doc.set_value(doc.by_id("filterType"), history_filter)
            if limit:
                limit_select = doc.by_id("limitResults")
                if not any(o.get("value") == str(limit) for o in limit_select.find_all("option")):
                    limit_select.append(doc.new_tag("option", text=str(limit), value=str(limit)))
                doc.set_value(limit_select, limit)
            records = await panel.history.load()
        else:
            records = None

        if action == "list":
            if records is None:
                records = await panel.history.load()
            if not records:
                print(doc.text(doc.by_id("emptyState")))
                return 0
            for record in records:
                status = get_message(
                    "history.status_threat" if record.is_phishing else "history.status_safe",
                    language,
                )
                print(
                    f"{format_timestamp(record.created_at, language)}  "
                    f"{status:<10} {record.risk_score:>3}/100  {record.url}"
                )
            return 0

        if action == "export":
            path = await panel.history.export(ExportFormat(export_format))
            toast = doc.select_one(".toast")
            if path is None:
                print(doc.text(toast), file=sys.stderr)
                return 1
            print(doc.text(toast))
            print(str(path))
            return 0

        cleared = await panel.history.clear()
        toast = doc.select_one(".toast")
        if toast is not None:
            print(doc.text(toast), file=sys.stdout if cleared else sys.stderr)
        return 0 if cleared else 1


async def show_stats(config: PanelConfig, verbose: bool = False) -> int:
    async with create_panel(config, verbose) as panel:
        stats = panel.stats.stats
        print(get_message(
            "cli.stats", config.language,
            total=stats.total_checks, threats=stats.threats_blocked, safe=stats.safe_urls,
        ))
    return 0


async def render_view(view: View, config: PanelConfig, full: bool = False, verbose: bool = False) -> int:
    async with create_panel(config, verbose) as panel:
        if not await panel.navigate(view):
            return 1
        doc = panel.document
        print(doc.soup.prettify() if full else doc.root.prettify())
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """Handle the 'analyze' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    return asyncio.run(analyze_url(args.url, config, verbose=args.verbose))


def cmd_domain_list(args: argparse.Namespace) -> int:
    """Handle the 'whitelist' and 'blacklist' commands."""
    config = resolve_config(args)
    if config is None:
        return 1
    return asyncio.run(manage_domain_list(
        view=View(args.command),
        action=args.action,
        domain=args.domain,
        config=config,
        verbose=args.verbose,
        assume_yes=args.yes,
    ))


def cmd_history(args: argparse.Namespace) -> int:
    """Handle the 'history' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    return asyncio.run(manage_history(
        action=args.action,
        config=config,
        history_filter=args.filter,
        limit=args.limit,
        export_format=args.format,
        output_dir=Path(args.output_dir) if args.output_dir else None,
        verbose=args.verbose,
        assume_yes=args.yes,
    ))


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle the 'stats' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    return asyncio.run(show_stats(config, verbose=args.verbose))


def cmd_render(args: argparse.Namespace) -> int:
    """Handle the 'render' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    return asyncio.run(render_view(View(args.view), config, full=args.full, verbose=args.verbose))


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return 1

        print(f"Configuration from: {config_path}")
        print(f"  API: {config.api.base_url} (lists under {config.api.list_prefix})")
        print(f"  Timeout: {config.api.timeout_seconds}s")
        print(f"  Language: {config.language}")
        print(f"  Simulation mode: {config.simulation_mode}")
        print(f"  State directory: {config.storage.state_dir}")
        print(f"  Cache capacity: {config.cache.capacity}")
        print(f"  Log level: {config.logging.level}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return 1

        config = create_default_config(language=args.language or "en")
        if save_config_to_file(config, config_path):
            print(f"Configuration created at: {config_path}")
            return 0
        return 1

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
            return 1

        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def _common_arguments() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    common.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulation mode - no real network requests",
    )
    common.add_argument(
        "--language", "-l",
        choices=["en", "de"],
        default=None,
        help="Output language (default: from configuration)",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    return common


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="phisher-panel",
        description="Headless phishing URL analysis panel",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    common = _common_arguments()
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'analyze' command
    analyze_parser = subparsers.add_parser(
        "analyze",
        parents=[common],
        help="Analyze a URL for phishing",
    )
    analyze_parser.add_argument(
        "url",
        help="URL to analyze (e.g., https://example.com/login)",
    )
    analyze_parser.set_defaults(func=cmd_analyze)

    # 'whitelist' and 'blacklist' commands
    for view, description in (
        (View.WHITELIST, "Manage trusted domains"),
        (View.BLACKLIST, "Manage blocked domains"),
    ):
        list_parser = subparsers.add_parser(
            view.value,
            parents=[common],
            help=description,
        )
        list_parser.add_argument(
            "action",
            choices=["list", "add", "remove"],
            help="List action",
        )
        list_parser.add_argument(
            "domain",
            nargs="?",
            help="Domain to add or remove",
        )
        list_parser.add_argument(
            "--yes", "-y",
            action="store_true",
            help="Do not ask for confirmation",
        )
        list_parser.set_defaults(func=cmd_domain_list)

    # 'history' command
    history_parser = subparsers.add_parser(
        "history",
        parents=[common],
        help="List, export or clear the analysis history",
    )
    history_parser.add_argument(
        "action",
        choices=["list", "export", "clear"],
        help="History action",
    )
    history_parser.add_argument(
        "--filter",
        choices=[f.value for f in HistoryFilter],
        help="Show all analyses or threats only",
    )
    history_parser.add_argument(
        "--limit",
        type=int,
        help="Maximum number of entries to list",
    )
    history_parser.add_argument(
        "--format",
        choices=[f.value for f in ExportFormat],
        default="csv",
        help="Export format (default: csv)",
    )
    history_parser.add_argument(
        "--output-dir", "-o",
        help="Directory to write exports to (default: ~/Downloads)",
    )
    history_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Do not ask for confirmation",
    )
    history_parser.set_defaults(func=cmd_history)

    # 'stats' command
    stats_parser = subparsers.add_parser(
        "stats",
        parents=[common],
        help="Show local analysis counters",
    )
    stats_parser.set_defaults(func=cmd_stats)

    # 'render' command
    render_parser = subparsers.add_parser(
        "render",
        parents=[common],
        help="Print the markup of a view",
    )
    render_parser.add_argument(
        "view",
        choices=[v.value for v in View],
        help="View to render",
    )
    render_parser.add_argument(
        "--full",
        action="store_true",
        help="Print the whole panel document instead of the root container",
    )
    render_parser.set_defaults(func=cmd_render)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.add_argument(
        "--language", "-l",
        choices=["en", "de"],
        default=None,
        help="Default language for new configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
