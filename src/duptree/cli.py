#!/usr/bin/env python3
"""
duptree CLI — find duplicate files and directory trees, then resolve them interactively.
Deletion only ever happens after an explicit choice for a re-verified group.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import sys
import os
import time
from typing import Dict, List, NoReturn
import logging

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    from send2trash import send2trash
except ImportError:
    _MISSING_DEPS.append("send2trash")

try:
    import xxhash
except ImportError:
    _MISSING_DEPS.append("xxhash")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from duptree.core.errors import DuptreeError
from duptree.core.stages import FingerprintEngine
from duptree.core.models import SearchParams, Stage
from duptree.core.resolver import GroupView, Quit
from duptree.core.tree import Node
from duptree.commands import DuplicateSearchCommand
from duptree.services.duplicate_service import DuplicateService
from duptree.utils.convert_utils import ConvertUtils
from duptree.utils.progress import Progress
from duptree.aliases import ALGORITHM_CHOICES, ALGORITHM_HELP_TEXT, FILTER_HELP_TEXT, EPILOG_TEXT

CLEAR = "\r\x1b[2K"


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse and validate command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="duptree",
            description="duptree — find duplicate files and directory trees by content",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "paths",
            nargs="+",
            metavar="PATH",
            help="Files or directories to scan"
        )

        # Hashing options
        parser.add_argument(
            "--filter", "-f",
            action="append",
            default=[],
            dest="filters",
            metavar="EXT:CMD",
            help=FILTER_HELP_TEXT
        )
        parser.add_argument(
            "--algorithm", "-a",
            choices=ALGORITHM_CHOICES,
            default="sha1",
            help=ALGORITHM_HELP_TEXT
        )
        parser.add_argument(
            "--workers", "-j",
            type=int,
            default=1,
            metavar="N",
            help="Hash up to N files in parallel. Default: 1"
        )
        parser.add_argument(
            "--no-prune",
            action="store_false",
            dest="prune",
            help="Hash every file, even those whose size is unique"
        )

        # Actions
        action = parser.add_mutually_exclusive_group()
        action.add_argument(
            "--report",
            action="store_true",
            help="Print the duplicate groups and exit without deleting anything"
        )
        action.add_argument(
            "--dump-tree",
            action="store_true",
            help="Print the scanned trees and exit"
        )
        action.add_argument(
            "--cat",
            action="store_true",
            help="Write the bytes each PATH is hashed from to stdout and exit"
        )
        parser.add_argument(
            "--trash",
            action="store_true",
            help="Move deleted entries to the system trash instead of removing them"
        )

        # Output options
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show detailed statistics and log messages"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        for path in args.paths:
            if not os.path.lexists(path):
                self.error_exit(f"Path not found: {path}")

        if args.workers < 1:
            self.error_exit("--workers must be at least 1")

        for spec in args.filters:
            ext, sep, command = spec.partition(":")
            if not sep or not ext.strip() or not command.strip():
                self.error_exit(f"Invalid filter '{spec}', expected EXT:COMMAND")

    def create_params(self, args: argparse.Namespace) -> SearchParams:
        """Create SearchParams from CLI arguments."""
        try:
            return SearchParams.from_cli(
                paths=args.paths,
                filter_specs=args.filters,
                algorithm=args.algorithm,
                workers=args.workers,
                trash=args.trash,
                prune=args.prune,
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    # =============================
    # Collaborators
    # =============================

    def progress_callback(self, stage: str, current: int, total) -> None:
        """Stage-level progress; byte-level progress of hashing is drawn by Progress."""
        if not self.verbose or stage == Stage.LEAF.value:
            return

        if total:
            sys.stderr.write(f"{CLEAR}  [{stage}] {current}/{total}")
        else:
            sys.stderr.write(f"{CLEAR}  [{stage}] {current} nodes")
        sys.stderr.flush()

    def make_progress(self, total: int) -> Progress:
        if not self.quiet:
            print(f"need to hash {ConvertUtils.bytes_to_human(total)}")
        return Progress(total, printer=None if self.quiet else self._redraw)

    @staticmethod
    def _redraw(line: str) -> None:
        sys.stderr.write(CLEAR + line)
        sys.stderr.flush()

    def on_filter_exit(self, command: str, returncode: int, stderr: bytes) -> None:
        if returncode != 0:
            self.warning(f"Filter '{command}' exited with status {returncode}")

    @staticmethod
    def read_option(options: Dict[str, str]) -> str:
        """Asks until one of the offered keys is typed. End of input means quit."""
        while True:
            print("Please select an option:")
            for key, description in options.items():
                print(f"  {key}: {description}")
            try:
                line = input("> ").strip()
            except EOFError:
                print()
                return "q"
            if line in options:
                return line

    def show_group(self, view: GroupView) -> None:
        print()
        if view.reverify is not None:
            for path in view.reverify.vanished:
                print(f'"{path}" no longer exists')
            for drift in view.reverify.drifted:
                print(f'"{drift.path}" hash has changed')
            for path, reason in view.reverify.unreadable.items():
                print(f'"{path}" cannot be read: {reason}')
        duplicated = ConvertUtils.bytes_to_human(view.duplicated_bytes)
        print(f"{view.position}/{view.total}: [{view.hash}] ({len(view.members)} copies, {duplicated} duplicated)")

    @staticmethod
    def on_deleted(node: Node) -> None:
        print(f'deleted {node.type.display_name} "{node.path}"')

    # =============================
    # Actions
    # =============================

    def dump_trees(self, params: SearchParams) -> None:
        command = DuplicateSearchCommand()
        for root in command.scan(params):
            for line in DuplicateService.render_tree(root):
                print(line)

    def cat_paths(self, params: SearchParams) -> None:
        command = DuplicateSearchCommand()
        engine = FingerprintEngine.from_params(params, on_filter_exit=self.on_filter_exit)
        out = sys.stdout.buffer
        for root in command.scan(params):
            for chunk in engine.content(root):
                out.write(chunk)
                out.flush()

    def output_report(self, rows) -> None:
        if not rows:
            print("No duplicates found.")
            return
        for line in DuplicateService.format_report(rows):
            print(line)
        total = ConvertUtils.bytes_to_human(DuplicateService.total_duplicated_bytes(rows))
        print(f"{len(rows)} duplicate groups, up to {total} duplicated")

    def run_search(self, params: SearchParams, report_only: bool) -> None:
        command = DuplicateSearchCommand()
        if not self.quiet:
            print("scanning directory tree...")

        registry, stats = command.execute(
            params,
            progress_callback=self.progress_callback,
            progress_factory=self.make_progress,
            on_filter_exit=self.on_filter_exit
        )

        if not self.quiet:
            sys.stderr.write("\n")
            print(f"found {stats.node_count:,} files, {ConvertUtils.bytes_to_human(stats.total_size)}")
            print(f"{len(registry):,} duplicate groups")
        if self.verbose:
            print(stats.print_summary())

        if report_only:
            self.output_report(registry.report())
            return

        state = command.resolve(
            choose=self.read_option,
            on_deleted=self.on_deleted,
            on_group=self.show_group
        )
        print("quit" if isinstance(state, Quit) else "done")

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv: List[str] = None) -> None:
        """Main entry point."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet

        logging.basicConfig(
            level=logging.INFO if self.verbose else logging.ERROR,
            format="%(levelname)-8s | %(name)-25s | %(message)s"
        )

        self.validate_args(args)
        params = self.create_params(args)

        try:
            if args.dump_tree:
                self.dump_trees(params)
            elif args.cat:
                self.cat_paths(params)
            else:
                self.run_search(params, report_only=args.report)
        except DuptreeError as e:
            self.error_exit(str(e))
        except OSError as e:
            self.error_exit(f"Scan failed: {e}")

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds")


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
