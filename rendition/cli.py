"""
Command Line Interface for image processing.
"""

import argparse
import logging
from typing import List, Optional

from .build_progress import BuildProgress
from .errors import RenditionError
from .output_manifest import OutputManifest
from .pipeline import Pipeline
from .reporter import Reporter
from .source_manifest import SourceManifest


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('rendition')


def cmd_process(args: argparse.Namespace) -> int:
    """Execute process command."""
    logger = setup_logging(args.verbose)

    try:
        source = SourceManifest.load(args.manifest, logger=logger)
        logger.info(f"Loaded manifest: {args.manifest}")
        logger.info(f"  Albums: {len(source.albums)}")
        logger.info(f"  Images: {source.total_images}")
    except FileNotFoundError:
        logger.error(f"Manifest not found: {args.manifest}")
        return 1
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Failed to load manifest: {e}")
        return 1

    logger.info(f"Source root: {args.source_root}")
    logger.info(f"Output: {args.output}")

    if args.show_files:
        logger.info("Show-files mode: will print each artifact")

    progress = None
    if not args.quiet:
        progress = BuildProgress(show_files=args.show_files, logger=logger)

    pipeline = Pipeline(
        source_root=args.source_root,
        output_dir=args.output,
        max_workers=args.max_processes,
        observer=progress,
        no_cache=args.no_cache,
        logger=logger,
    )

    try:
        manifest = pipeline.process(source)
    except KeyboardInterrupt:
        pipeline.stop()
        logger.info("Interrupted by user")
        return 130
    except RenditionError as e:
        logger.error(f"Processing aborted: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Processing failed: {e}")
        return 1

    if not args.quiet and not args.show_files:
        print()
        Reporter().report_summary(manifest)

    unprocessable = manifest.unprocessable_images
    if unprocessable:
        logger.error(f"{len(unprocessable)} image(s) could not be processed")
        return 1
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """Execute report command."""
    logger = setup_logging(args.verbose)

    try:
        manifest = OutputManifest.load(args.manifest)
    except FileNotFoundError:
        logger.error(f"Manifest not found: {args.manifest}")
        return 1
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Failed to load manifest: {e}")
        return 1

    reporter = Reporter()
    if args.type == 'summary':
        reporter.report_summary(manifest)
    elif args.type == 'failures':
        reporter.report_failures(manifest)

    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='rendition',
        description='Responsive image and thumbnail generation with a content-addressed cache',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Workflow:
  1. Process: python -m rendition process --source-root photos --manifest scan.json --output public
  2. Report:  python -m rendition report --manifest public/manifest.json

Re-running process only encodes artifacts whose source or settings changed.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    proc_parser = subparsers.add_parser('process', help='Process images from a scan manifest')
    proc_parser.add_argument('--source-root', required=True, help='Directory source paths are relative to')
    proc_parser.add_argument('-m', '--manifest', required=True, help='Input scan manifest file')
    proc_parser.add_argument('-o', '--output', required=True, help='Output directory')
    proc_parser.add_argument('--no-cache', action='store_true', help='Re-encode every artifact')
    proc_parser.add_argument('--max-processes', type=int, metavar='N',
                             help='Override processing.max_processes')
    proc_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')
    proc_parser.add_argument('--show-files', action='store_true',
                             help='Print each artifact as it is produced')
    proc_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    report_parser = subparsers.add_parser('report', help='Generate reports from an output manifest')
    report_parser.add_argument('-m', '--manifest', required=True, help='Output manifest file')
    report_parser.add_argument('-t', '--type', choices=['summary', 'failures'],
                               default='summary', help='Report type')
    report_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'process':
        return cmd_process(parsed_args)
    elif parsed_args.command == 'report':
        return cmd_report(parsed_args)

    return 1
