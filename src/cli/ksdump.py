# src/cli/ksdump.py

"""
ksdump: dump binary files into JSON using Kaitai Struct formats.

Examples:
    ksdump                                  dump all ksy associated binaries
    ksdump -f ./my_formats -b ./inputs      dump all ksy associated binaries
    ksdump -f ./my.ksy                      dump a single associated binary
    ksdump -f zip.ksy -b sample1.zip        dump a specific binary
    ksdump -f zip.ksy -b './binaries/*.zip' dump all zip binaries
"""

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version as get_version
from pathlib import Path
from typing import List, Optional, Sequence

from dump.pipeline import run_pipeline
from formats.discovery import check_inputs, expand_binary_glob, is_glob_pattern
from monitoring.logging_config import configure_logging
from runtime.config import LOG_LEVELS, DumpConfig, load_config
from runtime.context import RunContext
from runtime.errors import InputError

EPILOG = (
    "Associated binary names are taken from the ksy meta as ${id}.${file-extension}.\n"
    "Associated binaries are also found in nested directories.\n"
    "If an associated binary is not found it is logged and skipped.\n"
    "-f (format) must be a specific ksy when -b (binary) points to a specific file."
)


def _package_version() -> str:
    try:
        return get_version("ksdump")
    except PackageNotFoundError:
        return "dev"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ksdump",
        description="A tool to dump binary files into JSON using Kaitai Struct formats.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"ksdump {_package_version()}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with default options (defaults to config/ksdump.yaml)",
    )

    inputs = parser.add_argument_group("Input Options")
    inputs.add_argument(
        "-f", "--format",
        type=Path,
        default=None,
        help="Path to the Kaitai Struct format file or directory (default: ./formats)",
    )
    inputs.add_argument(
        "-b", "--binary",
        default=None,
        help="Path to the binary file or directory to parse, or a glob pattern (default: ./binaries)",
    )

    outputs = parser.add_argument_group("Output Options")
    outputs.add_argument(
        "-o", "--out",
        type=Path,
        default=None,
        help="Output path for generated JSONs (default: ./jsons)",
    )
    outputs.add_argument(
        "-p", "--parser",
        type=Path,
        default=None,
        help="Output path for compiled parsers (default: ./parsers)",
    )
    outputs.add_argument(
        "-s", "--spaces",
        type=int,
        nargs="?",
        const=2,
        default=None,
        help="Format JSON with N spaces (2 when given without a value; compact if not present)",
    )

    runtime = parser.add_argument_group("Runtime Options")
    runtime.add_argument(
        "-l", "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Set console log level (default: info)",
    )
    runtime.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Maximum number of binaries processed concurrently",
    )
    runtime.add_argument(
        "--compiler",
        default=None,
        help="kaitai-struct-compiler executable",
    )
    runtime.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Emit debug diagnostics on stderr",
    )
    return parser


def resolve_binaries(format_path: Path, binary: str) -> List[Path]:
    """
    Validate the format/binary combination and return the binary inputs.

    Raises InputError before anything is compiled or parsed. The checks
    shared with the pipeline live in formats.discovery.check_inputs; only
    the glob rules are specific to the command line.
    """
    check_inputs(format_path, [])

    if not is_glob_pattern(binary):
        binaries = [Path(binary)]
    elif format_path.is_dir():
        raise InputError("Invalid: Cannot use a glob pattern of binary files with a directory of formats.")
    else:
        binaries = expand_binary_glob(binary)
        if not binaries:
            raise InputError("Invalid: no files match binary glob pattern.")

    check_inputs(format_path, binaries)
    return binaries


def build_config(args: argparse.Namespace) -> DumpConfig:
    config = load_config(args.config)
    return config.with_overrides(
        format=args.format,
        binary=Path(args.binary) if args.binary is not None and not is_glob_pattern(args.binary) else None,
        out=args.out,
        parser=args.parser,
        spaces=args.spaces,
        log_level=args.log_level,
        max_workers=args.jobs,
        compiler=args.compiler,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)

    try:
        # DumpConfig validates itself, so bad values (e.g. negative spaces) land here too
        config = build_config(args)
        binaries = resolve_binaries(config.format, args.binary if args.binary is not None else str(config.binary))
    except (InputError, ValueError, KeyError, FileNotFoundError) as exc:
        parser.error(str(exc))

    ctx = RunContext.create(log_level=config.log_level, verbose=args.verbose)
    summary = run_pipeline(config, binaries=binaries, ctx=ctx)
    return summary.exit_code


if __name__ == "__main__":
    sys.exit(main())
