import argparse
import asyncio
import io
import logging
import os
import re
import sys
from datetime import datetime
from typing import List, Optional, Sequence, TextIO

from pydantic import ValidationError

from . import __version__
from .config.settings import ScoringMode, Settings, get_settings
from .dependencies import create_scan_coordinator_from_settings
from .errors import ConfigurationError
from .schemas import ScanReport
from .services import ReportEmitter, ScanCoordinator

logger = logging.getLogger("repo_variants")

STAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Names used by older releases of the toolkit
MODE_ALIASES = {
    "standard": ScoringMode.BASIC,
    "forensic": ScoringMode.COMPREHENSIVE,
}

DISCOVERY_LOGGER = "repo_variants.services.discovery"
EXTRACTOR_LOGGER = "repo_variants.services.metadata_extractor"

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repo-variants",
        description=(
            "Find, among scattered copies of a git working tree, the one that "
            "holds your most recent work."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-r", "--root-folder", required=True, help="Top-level directory to search."
    )
    parser.add_argument(
        "-n",
        "--repo-name",
        dest="name_filters",
        action="append",
        required=True,
        metavar="NAME",
        help="Basename prefix or glob of the copies to match. Repeatable.",
    )
    parser.add_argument(
        "-m",
        "--mode",
        choices=[m.value for m in ScoringMode] + list(MODE_ALIASES),
        help="basic ranks by HEAD commit time; comprehensive also counts file changes.",
    )
    parser.add_argument(
        "--deep-compare",
        action="store_true",
        help="Diff the best candidate against every other candidate.",
    )
    parser.add_argument("--tsv", action="store_true", help="Write a TSV sidecar.")
    parser.add_argument("--html", action="store_true", help="Write an HTML report.")
    parser.add_argument("--log", action="store_true", help="Also log to a file.")
    parser.add_argument(
        "--focus",
        metavar="GLOB",
        help="Track files matching GLOB (relative to each candidate) separately.",
    )
    parser.add_argument("--top", type=int, metavar="N", help="Show only the top N rows.")
    parser.add_argument("--max-depth", type=int, metavar="N", help="Limit search depth.")
    parser.add_argument("--workers", type=int, metavar="N", help="Worker pool size.")
    parser.add_argument("--output-dir", metavar="PATH", help="Where report files go.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show progress.")
    parser.add_argument("--debug", action="store_true", help="Debug logging everywhere.")
    parser.add_argument(
        "--debug-find", action="store_true", help="Debug logging for discovery."
    )
    parser.add_argument(
        "--debug-scan", action="store_true", help="Debug logging for extraction."
    )
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings) -> Settings:
    """Apply command-line overrides on top of environment settings."""
    overrides = {}
    if args.mode:
        overrides["MODE"] = MODE_ALIASES.get(args.mode, args.mode)
    if args.top is not None:
        overrides["TOP_N"] = args.top
    if args.max_depth is not None:
        overrides["MAX_DEPTH"] = args.max_depth
    if args.workers is not None:
        overrides["MAX_WORKERS"] = args.workers
    if args.output_dir:
        overrides["OUTPUT_DIR"] = args.output_dir
    if args.debug:
        overrides["DEBUG"] = True
    try:
        # Re-validate so bad overrides fail like bad environment values
        settings = Settings.model_validate({**base.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid option: {e.errors()[0]['msg']}") from e

    if settings.TOP_N is not None and settings.TOP_N < 1:
        raise ConfigurationError("--top must be at least 1")
    if settings.MAX_DEPTH is not None and settings.MAX_DEPTH < 0:
        raise ConfigurationError("--max-depth must not be negative")
    return settings


def validate_args(args: argparse.Namespace) -> None:
    if not args.root_folder:
        raise ConfigurationError("--root-folder is required")
    if not args.name_filters or not all(n.strip() for n in args.name_filters):
        raise ConfigurationError("--repo-name must not be empty")
    if not os.path.isdir(args.root_folder):
        raise ConfigurationError(f"Root folder does not exist: {args.root_folder}")


class ComponentDebugFilter(logging.Filter):
    """Passes records at ``level`` and above, plus everything from ``components``."""

    def __init__(self, level: int, components: Sequence[str] = ()):
        super().__init__()
        self.level = level
        self.components = tuple(components)

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.level or record.name in self.components


def configure_logging(
    args: argparse.Namespace, settings: Settings, log_file: Optional[str] = None
) -> None:
    level = logging.WARNING
    if args.verbose:
        level = logging.INFO
    if settings.DEBUG:
        level = logging.DEBUG

    components = []
    if args.debug_find:
        components.append(DISCOVERY_LOGGER)
    if args.debug_scan:
        components.append(EXTRACTOR_LOGGER)
    for name in components:
        logging.getLogger(name).setLevel(logging.DEBUG)

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.addFilter(ComponentDebugFilter(level, components))
    handlers: List[logging.Handler] = [console]
    if log_file:
        file_handler = logging.FileHandler(
            log_file, encoding="utf-8", errors="backslashreplace"
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logger.handlers[:] = handlers
    logger.setLevel(logging.DEBUG if log_file else level)


def filter_tag(name_filters: Sequence[str]) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", "+".join(name_filters)).strip("_") or "all"


async def collect_report(
    coordinator: ScanCoordinator, root: str, deep_compare: bool
) -> ScanReport:
    """Drain the scan stream, logging progress as it arrives."""
    report: Optional[ScanReport] = None
    async for event in coordinator.scan_stream(root, deep_compare=deep_compare):
        kind = event["type"]
        if kind == "status":
            logger.info(event["message"])
        elif kind == "candidate":
            logger.debug(event["message"])
        elif kind == "complete":
            logger.info(event["message"])
            report = event["report"]
        # Warnings were already logged by the component that raised them
    return report


def run(argv: Optional[Sequence[str]] = None, stdout: Optional[TextIO] = None) -> int:
    """Run the command line tool and return its exit code."""
    stdout = stdout or sys.stdout
    args = build_parser().parse_args(argv)
    try:
        validate_args(args)
        settings = resolve_settings(args, get_settings())
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILURE

    stamp = datetime.now().strftime(STAMP_FORMAT)
    tag = filter_tag(args.name_filters)
    writes_files = args.tsv or args.html or args.log or args.deep_compare
    if writes_files:
        try:
            os.makedirs(settings.OUTPUT_DIR, exist_ok=True)
        except OSError as e:
            print(
                f"❌ Cannot create output directory {settings.OUTPUT_DIR}: {e}",
                file=sys.stderr,
            )
            return EXIT_FAILURE

    log_file = None
    if args.log:
        log_file = os.path.join(settings.OUTPUT_DIR, f"repo_variants_{tag}_{stamp}.log")
    configure_logging(args, settings, log_file)
    if log_file:
        print(f"📄 Logging enabled → {log_file}", file=stdout)

    coordinator = create_scan_coordinator_from_settings(
        settings, args.name_filters, focus_pattern=args.focus
    )
    root = os.path.abspath(args.root_folder)
    logger.info(f"Running {settings.MODE.value.upper()} mode")
    logger.info(f"Looking for repos matching: {', '.join(args.name_filters)}")

    try:
        report = asyncio.run(collect_report(coordinator, root, args.deep_compare))
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILURE

    emitter = ReportEmitter(stdout, top_n=settings.TOP_N)
    emitter.emit_table(report)

    if args.deep_compare:
        emitter.emit_comparisons(report)
        for path in emitter.write_patches(report, settings.OUTPUT_DIR, stamp):
            print(f"Unified diff written to: {path}", file=stdout)

    if args.tsv:
        path = os.path.join(settings.OUTPUT_DIR, f"repo_variants_{tag}_{stamp}.tsv")
        emitter.write_tsv(report, path)
        print(f"📄 TSV report: {path}", file=stdout)

    if args.html:
        path = os.path.join(settings.OUTPUT_DIR, f"repo_variants_{tag}_{stamp}.html")
        emitter.write_html(report, path)
        print(f"📄 HTML report: {path}", file=stdout)

    return EXIT_OK


def main() -> None:
    # Candidate paths may hold undecodable bytes; print them escaped
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(errors="backslashreplace")
    sys.exit(run())


if __name__ == "__main__":
    main()
