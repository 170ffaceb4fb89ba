"""AITrans command-line entry point.

Drives the translation and analysis orchestrators from a terminal, e.g.::

    python aitrans.py translate cat --to ja
    python aitrans.py analyze "The cat sat on the mat." --kind sentence
    python aitrans.py use-provider gemini

Console output shows warnings and errors only; the full log goes to the file named by
``GENERAL.LOG_FILE`` inside the data directory.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from config.loader import ConfigLoader, ConfigLoaderError
from core.analysis.interface import AnalysisError, AnalysisKind, Err
from core.shared_data import SharedData
from core.trans.interface import TranslateExceptionError
from core.version import VERSION
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from core.analysis.interface import CanonicalResult
    from models.cache_models import CacheStatistics
    from models.config_models import Config

CFG_FILE: Final[str] = "aitrans.ini"


def check_python_version() -> None:
    """Check if Python version is 3.12 or later.

    Raises:
        RuntimeError: If Python version is below 3.12.
    """
    if sys.version_info < (3, 12):
        msg = "Python 3.12 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = _ArgumentParser(
        prog="aitrans",
        description="Translate text and analyze words or sentences with AI providers",
        epilog="Example: python aitrans.py translate cat --to ja",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--config", dest="config", metavar="FILE", default=CFG_FILE, help="Configuration file")
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--data-dir", dest="data_dir", metavar="DIR", help="Override GENERAL.DATA_DIR")

    commands = parser.add_subparsers(dest="command", required=True, parser_class=_ArgumentParser)

    translate = commands.add_parser("translate", help="Translate text")
    translate.add_argument("text", nargs="+", help="Text to translate")
    translate.add_argument("--from", dest="src_lang", metavar="LANG", help="Source language (default: config)")
    translate.add_argument("--to", dest="tgt_lang", metavar="LANG", help="Target language (default: config)")

    analyze = commands.add_parser("analyze", help="Analyze a word or a sentence")
    analyze.add_argument("text", nargs="+", help="Word or sentence to analyze")
    analyze.add_argument(
        "--kind", choices=[kind.value for kind in AnalysisKind], help="Content kind (default: guessed from spaces)"
    )
    analyze.add_argument("--lang", dest="target_language", metavar="LANG", help="Answer language (default: config)")
    analyze.add_argument(
        "--provider", metavar="ID", help="Switch to this provider and save it as the default before analyzing"
    )

    commands.add_parser("providers", help="List analysis providers")

    use_provider = commands.add_parser("use-provider", help="Select and persist the default analysis provider")
    use_provider.add_argument("provider_id", metavar="ID")

    commands.add_parser("cache-stats", help="Show cache statistics")

    clear_cache = commands.add_parser("clear-cache", help="Clear caches")
    clear_cache.add_argument("--which", choices=["translation", "analysis", "all"], default="all")

    commands.add_parser("reload", help="Reload prompt templates and clear the analysis cache")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """Load the configuration file and apply CLI overrides.

    Raises:
        ConfigLoaderError: If the configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    return ConfigLoader(
        config_filename=args.config, script_name=script_name, debug=args.debug, data_dir=args.data_dir
    ).config


def setup_logging(config: Config) -> None:
    data_dir: Path = FileUtils.resolve_path(config.GENERAL.DATA_DIR)
    LoggerUtils.setup(data_dir, config.GENERAL.LOG_FILE, debug=config.GENERAL.DEBUG)


def _print_statistics(statistics: CacheStatistics | None) -> None:
    if statistics is None:
        return
    print(json.dumps(statistics.to_dict(), ensure_ascii=False, indent=2))


def _print_result_error(result: CanonicalResult) -> bool:
    if isinstance(result, Err):
        print(f"Error: {result.kind.value}: {result.message}", file=sys.stderr)
        return True
    return False


async def run_command(shared: SharedData, args: argparse.Namespace) -> int:
    """Execute one subcommand and return the process exit code."""
    match args.command:
        case "translate":
            text: str = " ".join(args.text)
            print(await shared.trans_manager.translate(text, args.src_lang, args.tgt_lang))
        case "analyze":
            text = " ".join(args.text)
            kind = AnalysisKind(args.kind) if args.kind else (
                AnalysisKind.SENTENCE if " " in text.strip() else AnalysisKind.WORD
            )
            if args.provider and _print_result_error(shared.analysis_manager.set_provider(args.provider)):
                return 1
            print(await shared.analysis_manager.analyze(text, kind, args.target_language))
        case "providers":
            current: str | None = shared.registry.current_provider_id
            available: set[str] = {config.id for config in shared.registry.available_providers()}
            for provider_id in shared.registry.provider_ids:
                mark: str = "*" if provider_id == current else " "
                state: str = "ready" if provider_id in available else "unavailable"
                print(f"{mark} {provider_id:<12} {state}")
        case "use-provider":
            if _print_result_error(shared.analysis_manager.set_provider(args.provider_id)):
                return 1
            print(f"Current provider: {args.provider_id}")
        case "cache-stats":
            _print_statistics(shared.trans_manager.cache_statistics())
            _print_statistics(shared.analysis_manager.cache_statistics())
        case "clear-cache":
            if args.which in ("translation", "all"):
                print(f"translation: {await shared.trans_manager.clear_cache()} entries removed")
            if args.which in ("analysis", "all"):
                print(f"analysis: {await shared.analysis_manager.clear_cache()} entries removed")
        case "reload":
            await shared.analysis_manager.reload_config()
            print(f"Prompt templates reloaded: {shared.prompts.template_version}")
        case _:
            return 2
    return 0


async def main(argv: list[str] | None = None) -> int:
    check_python_version()
    args: argparse.Namespace = parse_arguments(argv)
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return 1

    setup_logging(config)
    shared = SharedData(config)
    await shared.async_init()
    try:
        return await run_command(shared, args)
    except TranslateExceptionError as err:
        print(f"\nTranslation failed: {err}", file=sys.stderr)
        return 1
    except AnalysisError as err:
        print(f"\nAnalysis failed ({err.kind.value}): {err}", file=sys.stderr)
        return 1
    finally:
        await shared.close()


def cli() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n\nCancelled by user.", file=sys.stderr)
        sys.exit(130)
    except (OSError, RuntimeError, ValueError) as err:
        print(f"\nFatal error: {err}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    cli()
