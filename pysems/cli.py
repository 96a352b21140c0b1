"""
Command line entry point.

Usage:
    pysems -g genotype.txt -p phenotype.txt -o results.tsv [-m 100] [-r 1]

Prints the slope (a) and intercept (b) of every marker/trait fit to stdout
and writes the full results table to the output file.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__
from ._backends import BACKENDS, METHODS
from ._utils import setup_logging
from .config import ScanConfig, load_config
from .data import load_genotype, load_phenotype
from .exceptions import PySemsError
from .scan import scan

logger = logging.getLogger(__name__)

HINT = 'use "-help" for a description of valid arguments'


class ArgumentParser(argparse.ArgumentParser):
    """argparse with exit status 1 and a pointer to -help on errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        sys.stderr.write(f"{self.prog}: {message}\n{HINT}\n")
        self.exit(1)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="pysems",
        description="Least squares regression of genetic markers against traits.",
        add_help=False,
    )
    parser.add_argument('-h', '-help', '--help', action='help',
                        help="show this help message and exit")
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")

    required = parser.add_argument_group("required arguments")
    required.add_argument('-g', '-genotype', '--genotype', required=True, metavar='FILE',
                          help="input: genotype file")
    required.add_argument('-p', '-phenotype', '--phenotype', required=True, metavar='FILE',
                          help="input: phenotype file")
    required.add_argument('-o', '-output', '--output', required=True, metavar='FILE',
                          help="output: results table (tab-separated)")

    optional = parser.add_argument_group("optional arguments")
    optional.add_argument('-n', '-individual', '--individual', type=int, metavar='N',
                          help="use the first N individuals found in both files")
    optional.add_argument('-m', '-marker', '--marker', type=int, metavar='N',
                          help="scan the first N markers")
    optional.add_argument('-r', '-trait', '--trait', type=int, metavar='N',
                          help="scan the first N traits")
    optional.add_argument('--backend', choices=BACKENDS, default=None,
                          help="computational backend (default: auto)")
    optional.add_argument('--method', choices=METHODS, default=None,
                          help="invert X'X from its LU factors, or solve the normal equations")
    precision = optional.add_mutually_exclusive_group()
    precision.add_argument('--fp64', dest='use_fp64', action='store_const', const=True,
                           default=None, help="double precision")
    precision.add_argument('--fp32', dest='use_fp64', action='store_const', const=False,
                           help="single precision")
    optional.add_argument('--config', metavar='FILE', help="YAML configuration file")
    optional.add_argument('--log-level', default=None,
                          help="logging level (default: INFO)")
    optional.add_argument('--summary', action='store_true',
                          help="print the strongest associations after the listing")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config) if args.config else ScanConfig()
        cfg = cfg.merged(
            backend=args.backend,
            use_fp64=args.use_fp64,
            method=args.method,
            n_individual=args.individual,
            n_marker=args.marker,
            n_trait=args.trait,
            log_level=args.log_level,
        )
        setup_logging(cfg.log_level)

        genotype = load_genotype(args.genotype)
        phenotype = load_phenotype(args.phenotype)
        result = scan(
            genotype,
            phenotype,
            markers=cfg.n_marker,
            traits=cfg.n_trait,
            backend=cfg.backend,
            use_fp64=cfg.use_fp64,
            method=cfg.method,
            n_individual=cfg.n_individual,
        )
        sys.stdout.write(result.report(cfg.float_format))
        if args.summary:
            result.summary()
        result.to_csv(args.output)
        logger.info("Results written to %s", args.output)

    except (PySemsError, OSError, RuntimeError, ValueError) as e:
        sys.stderr.write(f"{parser.prog}: {e}\n")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
