#!/usr/bin/env python3
"""
Whitelist Merkle command line.

    build       whitelist file -> root + proof report
    verify      check one account against a root
    multiproof  one compact proof for several accounts
    benchmark   single proofs vs multiproofs over generated whitelists
"""

import argparse
import sys

from merkle_errors import MerkleTreeError
from proof_verifier import verify, verify_multiproof
from report_generator import (
    MULTIPROOF_FORMAT,
    build_multiproof_report,
    build_proof_report,
    find_report_record,
    format_proof_report,
    load_proof_report,
    report_entry,
    report_multiproof,
    save_proof_report,
)
from standard_tree_builder import StandardMerkleTreeBuilder
from tree_config import set_tree_config
from whitelist_loader import DEFAULT_DECIMALS, load_whitelist, make_entry, normalize_address, to_base_units


def _build_tree(path, decimals, verbose):
    entries = load_whitelist(path, decimals)
    print(f"📄 Loaded {len(entries)} entries from {path}")
    builder = StandardMerkleTreeBuilder(entries, verbose=verbose)
    builder.build()
    return builder


def run_build(args):
    builder = _build_tree(args.input, args.decimals, args.verbose)
    report = build_proof_report(builder)
    print(f"Merkle Root: {report['root']}")

    if args.print:
        print(format_proof_report(report))
    if args.output:
        path = save_proof_report(report, args.output)
        print(f"💾 Saved proofs for {len(report['entries'])} entries to {path}")
    return 0


def _verify_multiproof_report(args):
    report = load_proof_report(args.multiproof_report)
    entries, multiproof = report_multiproof(report)
    root = args.root or report["root"]

    if args.address:
        wanted = {normalize_address(a) for a in args.address}
        missing = wanted - {e.address for e in entries}
        if missing:
            print(f"❌ Not in {args.multiproof_report}: {', '.join(sorted(missing))}")
            return 1
        entries = [e for e in entries if e.address in wanted]

    if verify_multiproof(entries, multiproof, root):
        print(f"✅ {len(entries)} entries verified under {root}")
        return 0
    print(f"❌ Multiproof does not match {root}")
    return 1


def run_verify(args):
    if args.multiproof_report:
        return _verify_multiproof_report(args)
    if not args.address:
        print("❌ verify needs --address", file=sys.stderr)
        return 2
    if len(args.address) != 1:
        print("❌ verify checks one --address at a time without --multiproof-report", file=sys.stderr)
        return 2
    address = args.address[0]

    if args.report:
        report = load_proof_report(args.report)
        if report["format"] == MULTIPROOF_FORMAT:
            print(f"❌ {args.report} is a multiproof, pass it as --multiproof-report", file=sys.stderr)
            return 2
        amount = to_base_units(args.amount, args.decimals) if args.amount is not None else None
        record = find_report_record(report, normalize_address(address), amount)
        if record is None:
            print(f"❌ {address} is not in {args.report}")
            return 1
        entry = report_entry(report, record)
        proof = record["proof"]
        root = args.root or report["root"]
    else:
        if args.root is None or args.amount is None:
            print("❌ verify needs --report, or --root and --amount", file=sys.stderr)
            return 2
        entry = make_entry(address, args.amount, args.decimals)
        proof = args.proof or []
        root = args.root

    ok = verify(entry, proof, root)
    if ok:
        print(f"✅ {entry.address} is whitelisted for {entry.amount} under {root}")
        return 0
    print(f"❌ Proof for {entry.address} does not match {root}")
    return 1


def run_multiproof(args):
    builder = _build_tree(args.input, args.decimals, args.verbose)
    wanted = {normalize_address(a) for a in args.address}
    indices = [i for i, entry in builder.entries() if entry.address in wanted]

    missing = wanted - {builder.ordered_entries[i].address for i in indices}
    if missing:
        print(f"❌ Not in whitelist: {', '.join(sorted(missing))}")
        return 1

    multiproof = builder.generate_multiproof(indices)
    chosen = [builder.ordered_entries[i] for i in indices]
    ok = verify_multiproof(chosen, multiproof, builder.root)

    report = build_multiproof_report(builder, multiproof)
    print(f"Merkle Root: {report['root']}")
    print(f"🔗 {len(indices)} leaves, {len(multiproof.proof)} proof hashes, "
          f"{len(multiproof.proof_flags)} flags, verified: {ok}")
    if args.output:
        path = save_proof_report(report, args.output)
        print(f"💾 Saved multiproof to {path}")
    return 0 if ok else 1


def run_benchmark(args):
    from benchmark_suite import WhitelistBenchmarkSuite

    suite = WhitelistBenchmarkSuite(
        sizes=args.sizes,
        subset_size=args.subset_size,
        trials=args.trials,
        random_seed=args.seed,
        verbose=args.verbose,
    )
    suite.run()
    summary = suite.summarize()
    print(summary.to_string(index=False))

    if args.output_dir:
        suite.save_results(args.output_dir)
        if args.charts:
            from generate_charts import generate_all_charts
            generate_all_charts(summary, args.output_dir)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="whitelist-merkle",
        description="Build and verify standard Merkle trees for airdrop whitelists",
    )
    parser.add_argument('--verbose', action='store_true', help='Print tree construction details')
    parser.add_argument('--parallel', action='store_true',
                        help='Hash wide tree levels on a thread pool')
    parser.add_argument('--workers', type=int, help='Thread pool size for --parallel')
    subparsers = parser.add_subparsers(dest='command', required=True)

    build = subparsers.add_parser('build', help='Build a tree and write every proof')
    build.add_argument('input', help='Whitelist file (.json, or text with "address amount" lines)')
    build.add_argument('-o', '--output', help='Write the proof report JSON here')
    build.add_argument('--decimals', type=int, default=DEFAULT_DECIMALS,
                       help=f'Token decimals used to scale amounts (default: {DEFAULT_DECIMALS})')
    build.add_argument('--print', action='store_true', help='Print every value and proof')
    build.set_defaults(func=run_build)

    check = subparsers.add_parser('verify', help='Verify accounts against a root')
    check.add_argument('--address', nargs='+',
                       help='Account to check (several with --multiproof-report, default: all)')
    check.add_argument('--report', help='Proof report written by "build"')
    check.add_argument('--multiproof-report', help='Multiproof written by "multiproof -o"')
    check.add_argument('--root', help='Root to verify against (default: the report root)')
    check.add_argument('--amount', help='Amount, in base units unless --decimals is given')
    check.add_argument('--decimals', type=int, default=0,
                       help='Token decimals of --amount (default: 0, base units)')
    check.add_argument('--proof', nargs='*', help='Sibling hashes, leaf level first')
    check.set_defaults(func=run_verify)

    multi = subparsers.add_parser('multiproof', help='One proof for several accounts')
    multi.add_argument('input', help='Whitelist file')
    multi.add_argument('--address', nargs='+', required=True)
    multi.add_argument('--decimals', type=int, default=DEFAULT_DECIMALS)
    multi.add_argument('-o', '--output', help='Write the multiproof JSON here')
    multi.set_defaults(func=run_multiproof)

    bench = subparsers.add_parser('benchmark', help='Compare single proofs and multiproofs')
    bench.add_argument('--sizes', type=int, nargs='+', default=[16, 100, 1000, 5000])
    bench.add_argument('--subset-size', type=int, default=8)
    bench.add_argument('--trials', type=int, default=5)
    bench.add_argument('--seed', type=int, default=42)
    bench.add_argument('--output-dir', help='Write CSV results (and charts) here')
    bench.add_argument('--charts', action='store_true', help='Also render PNG charts')
    bench.set_defaults(func=run_benchmark)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.parallel or args.workers:
        set_tree_config(parallel_hashing=True, max_workers=args.workers)

    try:
        return args.func(args)
    except MerkleTreeError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(f"❌ File not found: {e.filename}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
