#!/usr/bin/env python3
"""CLI entry point for feature-layout"""

import sys
import argparse
import logging

from .config import Settings
from .main import run
from .space_index import NUMBERING_MODES
from .utils import setup_logging

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Classify county extra features and build indexed layout data")
    parser.add_argument("--input-dir", type=str, help="Directory of county parcel HTML pages")
    parser.add_argument("--input-html", type=str, help="Process a single HTML page instead of a directory")
    parser.add_argument("--features-csv", type=str,
                        help="Extra-features CSV export for the --input-html page, used instead of its feature table")
    parser.add_argument("--output-dir", type=str, help="Where layout/utility/structure JSON is written")
    parser.add_argument("--data-dir", type=str, help="Where per-layout and relationship files are written")
    parser.add_argument("--usage-type", type=str,
                        help="Property usage type (e.g. 'Office'), overrides data/property.json")
    parser.add_argument("--write-files", action="store_true",
                        help="Also write layout_N.json and relationship files per property")
    parser.add_argument("--numbering", choices=NUMBERING_MODES,
                        help="Number children per space type (default) or across all siblings")
    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.features_csv and not args.input_html:
        # the CSV carries no property column, so it can only describe one page
        parser.error("--features-csv requires --input-html")

    settings = Settings.from_env()
    if args.input_dir:
        settings.input_dir = args.input_dir
    if args.output_dir:
        settings.output_dir = args.output_dir
    if args.data_dir:
        settings.data_dir = args.data_dir
    if args.numbering:
        settings.index_numbering = args.numbering

    log_file = setup_logging(settings.logs_dir, settings.log_level)
    logger.info(f"Logging to {log_file}")

    try:
        counts = run(settings, input_html=args.input_html, features_csv=args.features_csv,
                     usage_type=args.usage_type, write_files=args.write_files)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(1)
    except Exception as e:
        logger.exception("Transform failed")
        print(f"Error: {e}")
        sys.exit(1)

    if counts["failed"] and not counts["processed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
