import argparse
import logging
import os
import shutil
import tempfile

from pyaai import __version__
from pyaai.best_hits import HitFilter
from pyaai.errors import AaiError, InputError
from pyaai.log import setup_logging
from pyaai.pipeline import run_pipeline
from pyaai.search import Aligner, check_programs

logger = logging.getLogger(__name__)


# =====================================================
# ARGPARSE
# =====================================================
def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        prog="pyaai",
        description="All-vs-all Average Amino Acid Identity (AAI) calculator. "
                    "Each input file is treated as the ORFs of a single genome."
    )

    parser.add_argument("--infiles", nargs="*",
                        help="Protein FASTA files, one per genome")
    parser.add_argument("--outdir", default=".",
                        help="Output directory (default: .)")
    parser.add_argument("--basename", default="aai_scores",
                        help="Base name for output file (default: aai_scores)")

    parser.add_argument("-p", "--program", choices=["blast", "diamond"],
                        default="blast",
                        help="Search program: blast or diamond (default: blast)")
    parser.add_argument("-t", "--threads", type=int, default=1,
                        help="Threads per search (default: 1)")
    parser.add_argument("-j", "--jobs", type=int, default=1,
                        help="Searches to run at the same time (default: 1)")

    parser.add_argument("-i", "--identity", type=float, default=0.0,
                        help="Minimum identity percentage (default: 0)")
    parser.add_argument("-l", "--len", type=int, default=0,
                        help="Minimum alignment length (default: 0)")
    parser.add_argument("-L", "--len_fraction", type=float, default=0.0,
                        help="Minimum alignment length fraction of the shorter sequence (0-1)")
    parser.add_argument("-s", "--bitscore", type=float, default=0.0,
                        help="Minimum bitscore (default: 0)")
    parser.add_argument("-e", "--evalue", type=float, default=None,
                        help="Maximum e-value, also passed to the search program")

    parser.add_argument("-d", "--decimals", type=int, default=2,
                        help="Decimal positions (default: 2)")
    parser.add_argument("-R", "--rbh", action="store_true",
                        help="Also save reciprocal best hits to <basename>.rbh.tsv")
    parser.add_argument("--header", action="store_true",
                        help="Start the report with a # column header line")
    parser.add_argument("--keep-tmp", action="store_true",
                        help="Keep cleaned FASTA files, databases and btab files")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--log", help="Also log to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    if args.threads < 1 or args.jobs < 1:
        parser.error("--threads and --jobs must be at least 1")
    if not 0 <= args.len_fraction <= 1:
        parser.error("--len_fraction must be between 0 and 1")

    return args


def hit_filter_from_args(args):
    return HitFilter(
        min_identity=args.identity,
        min_length=args.len,
        min_length_fraction=args.len_fraction,
        min_bitscore=args.bitscore,
        max_evalue=args.evalue,
    )


# =====================================================
# MAIN
# =====================================================
def main(argv=None, aligner=None):
    args = parse_arguments(argv)

    try:
        setup_logging(args.debug, args.log)

        if not args.infiles:
            raise InputError("No infiles given")

        os.makedirs(args.outdir, exist_ok=True)
        outfile = os.path.join(args.outdir, f"{args.basename}.aai.txt")
        rbh_file = None
        if args.rbh:
            rbh_file = os.path.join(args.outdir, f"{args.basename}.rbh.tsv")

        if args.keep_tmp:
            workdir = os.path.join(args.outdir, f"{args.basename}_tmp")
            os.makedirs(workdir, exist_ok=True)
        else:
            workdir = tempfile.mkdtemp(prefix=f"{args.basename}_tmp.", dir=args.outdir)

        try:
            if aligner is None:
                check_programs(args.program)
                aligner = Aligner(workdir, args.program, args.threads, args.evalue)

            run_pipeline(
                args.infiles, outfile, aligner, workdir,
                hit_filter=hit_filter_from_args(args),
                jobs=args.jobs,
                decimals=args.decimals,
                header=args.header,
                rbh_file=rbh_file,
            )
        finally:
            if not args.keep_tmp:
                shutil.rmtree(workdir, ignore_errors=True)

    except (AaiError, OSError) as e:
        logger.error(str(e))
        return 1

    return 0
