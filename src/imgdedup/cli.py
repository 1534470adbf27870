#!/usr/bin/env python3
"""
imgdedup CLI — find near-duplicate images by perceptual hash and optionally move them away.
All destructive work is a move into a directory you choose; nothing is ever deleted.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import logging
import os
import re
import sys
import time
from pathlib import Path
from typing import List, NoReturn, Optional, Tuple

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

from imgdedup.aliases import (
    ALGORITHM_CHOICES, ALGORITHM_HELP_TEXT, HASH_SIZE_HELP_TEXT,
    THRESHOLD_HELP_TEXT, SUBCOMMAND_HELP, EPILOG_TEXT
)
from imgdedup.commands import DeduplicationCommand
from imgdedup.core.errors import PipelineError
from imgdedup.core.models import (
    DeduplicationParams, DuplicateSelection, Fingerprint, LoadReport,
    PipelineConfig, RelocationReport)
from imgdedup.services.file_service import FileService
from imgdedup.utils.convert_utils import ConvertUtils


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: int = 0
        self.quiet: bool = False

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        for stream in (sys.stdout, sys.stderr):
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(encoding='utf-8')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="imgdedup",
            description="imgdedup — find and move near-duplicate images using perceptual hashing",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "input_dir",
            type=str,
            help="The directory to source input images from"
        )
        parser.add_argument(
            "--in-filter", "-f",
            default=".*",
            type=str,
            dest="in_filter",
            metavar="REGEX",
            help="Only accept files whose path matches the regex filter. Default: .*"
        )
        parser.add_argument(
            "--concurrency", "-c",
            default=os.cpu_count() or 1,
            type=int,
            metavar="N",
            help="The number of threads to use for parallel computing. Default: number of CPUs"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="count",
            default=0,
            help="Sets the verbosity level of output. This is a repeated flag (-v, -vv)"
        )

        subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

        def add_hash_options(sub: argparse.ArgumentParser) -> None:
            sub.add_argument(
                "--algorithm", "-a",
                choices=ALGORITHM_CHOICES,
                default="double-gradient",
                type=str,
                help=ALGORITHM_HELP_TEXT
            )
            sub.add_argument(
                "--hash-size", "-s",
                default="12,12",
                type=str,
                dest="hash_size",
                metavar="W[,H]",
                help=HASH_SIZE_HELP_TEXT
            )

        def add_threshold_option(sub: argparse.ArgumentParser) -> None:
            sub.add_argument(
                "--threshold", "-t",
                default=16,
                type=int,
                metavar="N",
                help=THRESHOLD_HELP_TEXT
            )

        hash_cmd = subparsers.add_parser(
            "hash", help=SUBCOMMAND_HELP["hash"], formatter_class=argparse.RawTextHelpFormatter)
        add_hash_options(hash_cmd)

        scan_cmd = subparsers.add_parser(
            "scan-duplicates", help=SUBCOMMAND_HELP["scan-duplicates"],
            formatter_class=argparse.RawTextHelpFormatter)
        add_hash_options(scan_cmd)
        add_threshold_option(scan_cmd)

        move_cmd = subparsers.add_parser(
            "move-duplicates", help=SUBCOMMAND_HELP["move-duplicates"],
            formatter_class=argparse.RawTextHelpFormatter)
        add_hash_options(move_cmd)
        add_threshold_option(move_cmd)
        move_cmd.add_argument(
            "destination",
            type=str,
            help="The destination directory for duplicate files"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before anything is loaded."""
        root_path = Path(args.input_dir).resolve()
        if not root_path.exists():
            self.error_exit(f"Directory not found: {args.input_dir}")
        if not root_path.is_dir():
            self.error_exit(f"Path is not a directory: {args.input_dir}")

        if args.concurrency < 1:
            self.error_exit("Cannot specify 0 threads")

        try:
            re.compile(args.in_filter)
        except re.error as e:
            self.error_exit(f"Invalid regex filter /{args.in_filter}/: {e}")

        if not ConvertUtils.is_valid_hash_size(args.hash_size):
            self.error_exit(f"Invalid hash size: \"{args.hash_size}\" (expected W or W,H, both > 0)")

        threshold = getattr(args, "threshold", 0)
        if threshold < 0:
            self.error_exit("Threshold cannot be negative")

        destination = getattr(args, "destination", None)
        if destination is not None and Path(destination).resolve() == root_path:
            self.error_exit("Destination must differ from the input directory")

    def create_params(self, args: argparse.Namespace) -> DeduplicationParams:
        """Create DeduplicationParams from CLI arguments."""
        try:
            return DeduplicationParams.from_human_readable(
                root_dir=str(Path(args.input_dir).resolve()),
                algorithm=args.algorithm,
                hash_size_str=args.hash_size,
                threads=args.concurrency,
                threshold=getattr(args, "threshold", 16),
                name_filter=args.in_filter,
                destination=getattr(args, "destination", None),
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def configure_logging(self) -> None:
        """-q shows errors only, default shows warnings, -v adds stage info, -vv everything."""
        if self.quiet:
            level = logging.ERROR
        elif self.verbose >= 2:
            level = logging.DEBUG
        elif self.verbose == 1:
            level = logging.INFO
        else:
            level = logging.WARNING
        logging.getLogger().setLevel(level)

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(
                f"\r  [{stage}] {current}/{total} ({percent:.1f}%)"
            )
            sys.stderr.flush()
        else:
            sys.stderr.write(f"\r  [{stage}] {current} processed...")
            sys.stderr.flush()

    def info(self, message: str) -> None:
        if not self.quiet:
            print(message)

    def output_load_summary(self, report: LoadReport, fingerprinted: int) -> None:
        """Per-stage counts; skipped files are always reported separately from processed ones."""
        if self.verbose:
            sys.stderr.write("\n")
        if report.skipped:
            self.info(f"Failed to load {report.skipped_count} file(s).")
        self.info(f"Successfully loaded {report.loaded} image file(s).")
        if report.aborted:
            self.warning(
                f"Scan aborted early: {len(report.not_attempted)} file(s) were never attempted."
            )
        self.info(f"Finished computing perceptual hash for {fingerprinted} image(s).")

    def output_hashes(self, fingerprints: List[Tuple[str, Fingerprint]]) -> None:
        """One line per image: bracketed (truncated) name, padded, then the fingerprint."""
        max_len = PipelineConfig.NAME_FMT_MAX_LEN
        names = [FileService.get_filename(path) for path, _ in fingerprints]
        fmt_len = min(max((len(name) for name in names), default=0), max_len) + 2

        for name, (_, fp) in zip(names, fingerprints):
            braced = f"[{ConvertUtils.truncate_name(name, max_len)}]"
            print(f"  Img: {braced:<{fmt_len}}  Hash: [{fp.to_base64()}]")

    def output_results(self, selection: DuplicateSelection) -> None:
        """Similar pairs, closest first."""
        self.info(f"Finished computing hamming distance for {selection.pairs_compared} image pair(s).")

        if selection.nothing_to_compare:
            print("Nothing to compare (fewer than two images): no duplicates found.")
            return
        if selection.is_empty:
            print("No duplicates found.")
            return

        print(
            f"Found {len(selection.pairs)} similar pair(s) with a hamming distance of "
            f"≤{selection.threshold} ({len(selection.duplicate_paths)} files)."
        )
        for pair in selection.pairs:
            name_a, name_b = pair.names
            print(f"  [{name_a}] - [{name_b}]  Distance: {pair.distance}")

    def output_relocation(self, report: RelocationReport) -> None:
        """Hard stop on destination failure; per-file failures are listed but not fatal."""
        if report.aborted:
            self.error_exit(f"Relocation aborted: {report.error}. No files were moved.")

        if report.attempted == 0:
            print("Nothing to move.")
            return

        if report.failed:
            print(f"\n⚠️  Partial success: {len(report.moved)}/{report.attempted} files moved to {report.destination}.")
            print(f"Failed to move {len(report.failed)} file(s):")
            for path, error in report.failed[:5]:  # Show first 5 errors
                print(f"  • {FileService.get_filename(path)}: {error}")
            if len(report.failed) > 5:
                print(f"  ...and {len(report.failed) - 5} more files")
        else:
            print(f"✅ Successfully moved {len(report.moved)} files to {report.destination}.")

    def run_hash(self, command: DeduplicationCommand, params: DeduplicationParams) -> None:
        fingerprints, report = command.fingerprint(
            params, progress_callback=self.progress_callback if self.verbose else None
        )
        self.output_load_summary(report, len(fingerprints))
        self.output_hashes(fingerprints)

    def run_scan(self, command: DeduplicationCommand, params: DeduplicationParams) -> DuplicateSelection:
        selection = command.scan(
            params, progress_callback=self.progress_callback if self.verbose else None
        )
        self.output_load_summary(command.load_report, len(command.get_fingerprints()))
        self.output_results(selection)
        return selection

    def run_move(self, command: DeduplicationCommand, params: DeduplicationParams) -> None:
        selection = self.run_scan(command, params)
        if selection.is_empty:
            print("Nothing to move.")
            return

        self.info(f"\nMoving {len(selection.duplicate_paths)} files to {params.destination}...")
        report = command.relocate(
            selection, params.destination,
            progress_callback=self.progress_callback if self.verbose else None
        )
        if self.verbose:
            sys.stderr.write("\n")
        self.output_relocation(report)

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv=None) -> None:
        """Main entry point."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        self.configure_logging()

        self.validate_args(args)
        params = self.create_params(args)

        self.info(f"Loading files in [{params.root_dir}] with regex filter [/{params.name_filter}/].")

        command = DeduplicationCommand()
        try:
            if args.command == "hash":
                self.run_hash(command, params)
            elif args.command == "scan-duplicates":
                self.run_scan(command, params)
            elif args.command == "move-duplicates":
                self.run_move(command, params)
        except PipelineError as e:
            self.error_exit(f"{e}. Aborting.")
        except RuntimeError as e:
            self.error_exit(str(e))

        if self.verbose:
            print("\n" + command.stats.print_summary())
            elapsed = time.time() - self.start_time
            print(f"\n✅ Completed in {ConvertUtils.seconds_to_human(elapsed)}")


def main(argv=None) -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run(argv)
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
