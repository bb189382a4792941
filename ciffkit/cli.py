# ciffkit/cli.py
"""
Command line front end.

Examples:
  ciffkit data/robust04.ciff --human                 # text dumps into ./output
  ciffkit data/robust04.ciff --qciff --k1 0.9 --b 0.4  # writes output/q-robust04.ciff
  python -m ciffkit.cli data/robust04.ciff --header --dict -o dumps

The whole file is read and validated before anything is written. If a later
stage fails, every output file this run targeted is removed again, so a bad
input never leaves half a result behind.
"""

from __future__ import annotations

import argparse
import os
import sys
import warnings
from typing import List, Optional

from ciffkit import dump
from ciffkit.ciffio import read_index, write_index
from ciffkit.errors import CiffError, DegenerateRangeWarning
from ciffkit.paths import (B, BITS, DEFAULT_OUTPUT_DIR, DICT_FILE, DOCRECORDS_FILE, EPSILON,
                           HEADER_FILE, K1, POSTINGS_FILE, QCIFF_PREFIX, ROUNDING)
from ciffkit.quantize import ROUNDINGS, QuantizationPolicy, quantize_index


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="ciffkit",
        description="Inspect a CIFF file and/or rewrite it with quantized BM25 impacts.",
    )
    ap.add_argument("ciff", help="CIFF file to read.")
    ap.add_argument("-o", "--output-dir", default=DEFAULT_OUTPUT_DIR,
                    help="Output directory, created if missing. Existing files are overwritten.")
    ap.add_argument("--header", action="store_true", help=f"Write {HEADER_FILE}.")
    ap.add_argument("--dict", dest="dictionary", action="store_true", help=f"Write {DICT_FILE}.")
    ap.add_argument("--postings", action="store_true", help=f"Write {POSTINGS_FILE}.")
    ap.add_argument("--docrecords", action="store_true", help=f"Write {DOCRECORDS_FILE}.")
    ap.add_argument("--human", action="store_true", help="Write all four text dumps.")
    ap.add_argument("--qciff", action="store_true",
                    help=f"Write a quantized CIFF as <output-dir>/{QCIFF_PREFIX}<input name>.")
    ap.add_argument("--k1", type=float, default=K1, help="BM25 k1 (tf saturation).")
    ap.add_argument("--b", type=float, default=B, help="BM25 b (length normalization).")
    ap.add_argument("--bits", type=int, default=BITS, help="Bits per quantized impact.")
    ap.add_argument("--full-range", action="store_true",
                    help="Use [0, 2^bits) instead of reserving 0 (impacts start at 1).")
    ap.add_argument("--epsilon", type=float, default=EPSILON,
                    help="Added to the score range width when quantizing.")
    ap.add_argument("--rounding", choices=ROUNDINGS, default=ROUNDING,
                    help="How scaled scores become integers: floor (truncate) or round (half up).")
    ap.add_argument("-q", "--quiet", action="store_true", help="No progress output on stderr.")
    return ap


def _remove_outputs(paths: List[str]) -> None:
    for p in paths:
        try:
            os.remove(p)
        except FileNotFoundError:
            pass


def run(args: argparse.Namespace, policy: QuantizationPolicy) -> int:
    verbose = not args.quiet
    outdir = args.output_dir
    want_header = args.header or args.human
    want_dict = args.dictionary or args.human
    want_postings = args.postings or args.human
    want_docs = args.docrecords or args.human

    stage = "read"
    targets: List[str] = []
    try:
        index = read_index(args.ciff, verbose=verbose)

        stage = "output directory"
        os.makedirs(outdir, exist_ok=True)

        # text dumps show the index as read, before any quantization
        stage = "dump"
        if want_header:
            targets.append(os.path.join(outdir, HEADER_FILE))
            dump.write_header(index.header, outdir, verbose)
        if want_dict:
            targets.append(os.path.join(outdir, DICT_FILE))
            dump.write_dictionary(index.postings_lists, outdir, verbose)
        if want_postings:
            targets.append(os.path.join(outdir, POSTINGS_FILE))
            dump.write_postings(index.postings_lists, outdir, verbose)
        if want_docs:
            targets.append(os.path.join(outdir, DOCRECORDS_FILE))
            dump.write_doc_records(index.doc_records, outdir, verbose)

        if args.qciff:
            stage = "quantize"
            if verbose:
                print(f"[ciffkit] quantizing: k1={args.k1} b={args.b} bits={policy.bits}", file=sys.stderr)
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always", DegenerateRangeWarning)
                rng = quantize_index(index, k1=args.k1, b=args.b, policy=policy)
            for w in caught:
                print(f"[ciffkit] warning: {w.message}", file=sys.stderr)
            if verbose and rng.count:
                print(f"[ciffkit] score range [{rng.smallest:.6f}, {rng.largest:.6f}] over {rng.count:,} postings",
                      file=sys.stderr)

            stage = "write"
            out_path = os.path.join(outdir, QCIFF_PREFIX + os.path.basename(args.ciff))
            # claimed only once written; write_index cleans up its own .tmp
            write_index(index, out_path, verbose=verbose)
            targets.append(out_path)
    except CiffError as e:
        _remove_outputs(targets)
        print(f"[ciffkit] error during {e.stage or stage}: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        _remove_outputs(targets)
        print(f"[ciffkit] error during {stage}: {e}", file=sys.stderr)
        return 1

    if verbose:
        print("[ciffkit] complete", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        policy = QuantizationPolicy(bits=args.bits, reserve_zero=not args.full_range,
                                    epsilon=args.epsilon, rounding=args.rounding)
    except ValueError as e:
        ap.error(str(e))
    if not (args.header or args.dictionary or args.postings or args.docrecords
            or args.human or args.qciff):
        print("[ciffkit] no outputs requested (--human, --header, --dict, --postings, --docrecords, --qciff); validating input only",
              file=sys.stderr)
    return run(args, policy)


if __name__ == "__main__":
    sys.exit(main())
