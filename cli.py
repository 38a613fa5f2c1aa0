#!/usr/bin/env python3
"""
denorepack CLI

Repackages a multi-package TypeScript tree for a runtime that needs
fully-qualified module specifiers and URL-based external dependencies.
"""

import argparse
import logging
import sys
from pathlib import Path

from exporters import to_ascii, to_json
from repack.builder import build
from repack.config import load_config, merge_module_map
from repack.errors import RepackError

logger = logging.getLogger("denorepack")


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="denorepack",
        description="Rewrite module specifiers of a package tree into a mirrored output tree.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  denorepack                                 # packages/ -> packages/deno/packages/
  denorepack ./packages -o ./deno/packages   # Explicit source and output roots
  denorepack -c denorepack.yaml              # Load exclusions and module map from a file
  denorepack --map lodash=https://cdn.skypack.dev/lodash?dts
  denorepack --dry-run --ascii-style=ascii   # Show the planned output tree only
  denorepack --report build.json             # Write a JSON manifest of all rewrites
        """,
    )
    
    # Positional arguments
    parser.add_argument(
        "source_root",
        nargs="?",
        default=None,
        help="Directory containing one subdirectory per package (default: packages)",
    )
    
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output root, deleted and recreated on every run (default: packages/deno/packages)",
    )
    
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="YAML or TOML configuration file",
    )
    
    parser.add_argument(
        "--exclude-package",
        action="append",
        default=[],
        metavar="NAME",
        help="Additional package name to skip (repeatable)",
    )
    
    parser.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="NAME=TARGET",
        help="Add a module map entry: URL or source-root-relative path (repeatable)",
    )
    
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Transform all files and print the planned output tree without writing",
    )
    
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Write a JSON manifest of emitted files and rewrites",
    )
    
    parser.add_argument(
        "--ascii-style",
        choices=["tree", "ascii"],
        default="tree",
        help="Dry-run tree style: 'tree' (Unicode) or 'ascii' (pure ASCII)",
    )
    
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log every rewrite")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    
    return parser.parse_args(args)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)
    configure_logging(parsed.verbose, parsed.quiet)
    
    try:
        config = load_config(parsed.config)
        config = config.with_overrides(
            source_root=Path(parsed.source_root) if parsed.source_root else None,
            output_root=Path(parsed.output) if parsed.output else None,
            exclude_packages=(
                config.exclude_packages | set(parsed.exclude_package)
                if parsed.exclude_package else None
            ),
        )
        config = merge_module_map(config, parsed.map)
    except (RepackError, OSError) as e:
        logger.error("Error loading configuration: %s", e)
        return 1
    
    if not config.source_root.is_dir():
        logger.error("Error: '%s' is not a directory", config.source_root)
        return 1
    
    try:
        result = build(config, dry_run=parsed.dry_run)
    except (RepackError, OSError) as e:
        logger.error("Error repackaging: %s", e)
        return 1
    
    if parsed.dry_run:
        print(to_ascii(result, style=parsed.ascii_style))
    
    if parsed.report:
        try:
            report_path = Path(parsed.report)
            report_path.write_text(to_json(result), encoding="utf-8")
            logger.info("Report written to: %s", report_path)
        except OSError as e:
            logger.error("Error writing report: %s", e)
            return 1
    
    return 0


if __name__ == "__main__":
    sys.exit(main())
