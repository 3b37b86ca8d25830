import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Optional, Sequence

from motif_finder import __version__
from motif_finder.pipeline import AUTO_OUTPUT, run_pipeline
from motif_finder.search import create_search_config


def setup_logging(verbose: bool, quiet: bool = False):
    """Setup logging configuration."""
    if quiet:
        level = logging.WARNING
    else:
        level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    if verbose:
        logging.getLogger("numba").setLevel(logging.WARNING)


def _common_options() -> argparse.ArgumentParser:
    """Options shared by every search subcommand."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("input", help="Path to a FASTA file with the sequences to search.")

    search_group = common.add_argument_group("Search Options")
    search_group.add_argument(
        "-k",
        type=int,
        required=True,
        help="Motif length.",
    )
    search_group.add_argument(
        "-e",
        "--extra",
        type=float,
        default=1.0,
        help="Pseudocount added to every cell of the profile counts. (default: %(default)s)",
    )
    search_group.add_argument(
        "-n",
        "--entries",
        type=int,
        help="Read at most this many records from the FASTA file.",
    )
    search_group.add_argument(
        "-a",
        "--align",
        action="store_true",
        help="Rank the distinct motifs by local alignment and locate the final profile in every sequence.",
    )

    io_group = common.add_argument_group("Output Options")
    io_group.add_argument(
        "-o",
        "--output",
        nargs="?",
        const=AUTO_OUTPUT,
        help=(
            "Write a text report. Without a value the report is named "
            "MotifFinder-output-<timestamp>-<k>.txt in the working directory."
        ),
    )
    io_group.add_argument("--meme", help="Write the final profile in MEME format to this path.")
    io_group.add_argument("--sites", help="Write the located sites as a tab-separated table to this path.")

    technical_group = common.add_argument_group("Technical Options")
    technical_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging for detailed execution tracking.",
    )
    technical_group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors and hide progress bars.",
    )
    technical_group.add_argument(
        "--seed",
        type=int,
        help="Random seed for reproducible restarts.",
    )
    technical_group.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Number of parallel jobs to run. Set to -1 to use all available CPU cores. (default: %(default)s)",
    )
    return common


def create_arg_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="motif-finder",
        description="MotifFinder: de-novo discovery of regulatory motifs in DNA sequences",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
 Examples:
   # Exhaustive search for the median string
   motif-finder median promoters.fasta -k 6 -o

   # Randomized motif search with 50 restarts on 4 cores
   motif-finder randomized promoters.fasta -k 8 -r 50 --jobs 4 --seed 42

   # Gibbs sampling with alignment of the distinct motifs
   motif-finder gibbs promoters.fasta -k 8 -r 20 -t 1000 --align \\
     --meme motif.meme --sites sites.tsv
         """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = _common_options()
    subparsers = parser.add_subparsers(dest="mode", help="Search algorithm", required=True)

    subparsers.add_parser(
        "median",
        parents=[common],
        help="Exhaustive Median String search over all 4^k patterns.",
    )

    randomized_parser = subparsers.add_parser(
        "randomized",
        parents=[common],
        help="Randomized Motif Search with independent restarts.",
    )
    randomized_group = randomized_parser.add_argument_group("Randomized Options")
    randomized_group.add_argument(
        "-r",
        "--runs",
        type=int,
        default=20,
        help="Number of independent restarts. (default: %(default)s)",
    )

    gibbs_parser = subparsers.add_parser(
        "gibbs",
        parents=[common],
        help="Gibbs Sampler with independent restarts.",
    )
    gibbs_group = gibbs_parser.add_argument_group("Gibbs Options")
    gibbs_group.add_argument(
        "-r",
        "--runs",
        type=int,
        default=20,
        help="Number of independent restarts. (default: %(default)s)",
    )
    gibbs_group.add_argument(
        "-t",
        "--iters",
        type=int,
        default=1000,
        help="Number of sampling iterations per restart. (default: %(default)s)",
    )

    return parser


def validate_inputs(args) -> None:
    """Validate input files and parameters."""
    logger = logging.getLogger(__name__)
    if not os.path.exists(args.input):
        logger.error(f"FASTA file not found: {args.input}")
        sys.exit(1)
    if args.entries is not None and args.entries < 0:
        logger.error(f"--entries must be non-negative, got {args.entries}")
        sys.exit(1)


def map_args_to_pipeline_kwargs(args) -> Dict[str, Any]:
    """Map CLI arguments to search config keyword arguments."""
    kwargs = {
        "algorithm": args.mode,
        "k": args.k,
        "extra": args.extra,
        "seed": args.seed,
        "n_jobs": args.jobs,
        "show_progress": not args.quiet,
    }
    if args.mode in ("randomized", "gibbs"):
        kwargs["restarts"] = getattr(args, "runs", 20)
    if args.mode == "gibbs":
        kwargs["iterations"] = getattr(args, "iters", 1000)
    return kwargs


def main_cli(argv: Optional[Sequence[str]] = None):
    """Main CLI entry point."""
    parser = create_arg_parser()

    arguments = sys.argv[1:] if argv is None else list(argv)
    if not arguments:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args(arguments)

    setup_logging(args.verbose, args.quiet)
    validate_inputs(args)

    if args.verbose:
        logger = logging.getLogger(__name__)
        logger.info("=" * 60)
        logger.info(f"MotifFinder {__version__} - {args.mode.capitalize()} Mode")
        logger.info("=" * 60)
        logger.info(f"Sequences: {args.input}")
        logger.info(f"k: {args.k}, pseudocount: {args.extra:g}")
        logger.info("=" * 60)

    try:
        config = create_search_config(**map_args_to_pipeline_kwargs(args))
        report = run_pipeline(
            args.input,
            config,
            max_entries=args.entries,
            align=args.align,
            output_path=args.output,
            meme_path=args.meme,
            sites_path=args.sites,
            version=__version__,
        )
        print(json.dumps(report.summary()))

    except Exception as e:
        print(f"ERROR: Pipeline execution failed: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main_cli()
