"""
Benchmark Suite for Single Proofs vs Multiproofs

This module measures, for whitelists of increasing size:
1. Tree construction time
2. Single proof length and verification time
3. Multiproof size against the sum of the single proofs it replaces
4. Estimated calldata gas of shipping the proofs on-chain
"""

import json
import time
from collections import defaultdict
from pathlib import Path

import numpy as np
import pandas as pd

from proof_verifier import verify, verify_multiproof
from seed_generator import FIXED_SEED, WhitelistSeedGenerator
from standard_tree_builder import StandardMerkleTreeBuilder
from tree_config import get_tree_config

DEFAULT_SIZES = (16, 100, 1000, 5000)

# EIP-2028 calldata pricing
GAS_PER_ZERO_BYTE = 4
GAS_PER_NONZERO_BYTE = 16


def estimate_calldata_gas(digests):
    """Calldata gas for passing the digests as a bytes32[] argument body."""
    gas = 0
    for digest in digests:
        zeros = digest.count(0)
        gas += zeros * GAS_PER_ZERO_BYTE + (len(digest) - zeros) * GAS_PER_NONZERO_BYTE
    return gas


class PerformanceProfiler:
    """Profiles wall-clock time of named operations."""

    def __init__(self):
        self.metrics = defaultdict(list)
        self.current_test = None

    def start_test(self, test_name):
        """Start timing a specific test."""
        self.current_test = {
            'name': test_name,
            'start_time': time.perf_counter(),
        }

    def end_test(self, additional_metrics=None):
        """End timing and record metrics."""
        if not self.current_test:
            return None

        duration = time.perf_counter() - self.current_test['start_time']
        result = {
            'test_name': self.current_test['name'],
            'duration_seconds': duration,
        }
        if additional_metrics:
            result.update(additional_metrics)

        self.metrics[self.current_test['name']].append(result)
        self.current_test = None
        return result

    def get_summary(self):
        """Get performance summary."""
        summary = {}
        for test_name, results in self.metrics.items():
            if results:
                durations = np.array([r['duration_seconds'] for r in results])
                summary[test_name] = {
                    'avg_duration': float(durations.mean()),
                    'median_duration': float(np.median(durations)),
                    'min_duration': float(durations.min()),
                    'max_duration': float(durations.max()),
                    'total_runs': len(results),
                }
        return summary


class WhitelistBenchmarkSuite:
    """Compares single proofs and multiproofs over generated whitelists."""

    def __init__(self, sizes=DEFAULT_SIZES, subset_size=8, trials=5, random_seed=FIXED_SEED,
                 config=None, verbose=False):
        self.sizes = list(sizes)
        self.subset_size = subset_size
        self.trials = trials
        self.random_seed = random_seed
        self.config = config if config is not None else get_tree_config()
        self.verbose = verbose
        self.profiler = PerformanceProfiler()
        self.results = pd.DataFrame()

    def print_verbose(self, message: str):
        if self.verbose:
            print(message)

    def _benchmark_size(self, size):
        generator = WhitelistSeedGenerator(size, self.random_seed)
        entries = generator.generate_entries()

        self.profiler.start_test(f"build_{size}")
        builder = StandardMerkleTreeBuilder(entries, config=self.config, verbose=False)
        builder.build()
        build_metrics = self.profiler.end_test({'leaves': size})
        self.print_verbose(f"  🌳 {size} leaves built in {build_metrics['duration_seconds']:.4f}s")

        rows = []
        for trial in range(self.trials):
            indices = generator.sample_indices(builder.leaf_count, self.subset_size, trial)
            chosen = [builder.ordered_entries[i] for i in indices]

            start = time.perf_counter()
            single_proofs = [builder.generate_proof(i) for i in indices]
            single_ok = all(verify(e, p, builder.root) for e, p in zip(chosen, single_proofs))
            single_time = time.perf_counter() - start

            start = time.perf_counter()
            multiproof = builder.generate_multiproof(indices)
            multi_ok = verify_multiproof(chosen, multiproof, builder.root)
            multi_time = time.perf_counter() - start

            single_digests = [s for p in single_proofs for s in p.siblings]
            rows.append({
                'leaves': size,
                'trial': trial,
                'subset_size': len(indices),
                'build_time': build_metrics['duration_seconds'],
                'tree_height': len(builder.layers) - 1,
                'single_proof_hashes': len(single_digests),
                'single_proof_bytes': len(single_digests) * 32,
                'multiproof_hashes': len(multiproof.proof),
                'multiproof_bytes': multiproof.size_bytes,
                'multiproof_flags': len(multiproof.proof_flags),
                'single_calldata_gas': estimate_calldata_gas(single_digests),
                'multiproof_calldata_gas': estimate_calldata_gas(multiproof.proof),
                'single_time': single_time,
                'multiproof_time': multi_time,
                'verification_success': single_ok and multi_ok,
            })
        return rows

    def run(self):
        """Run every size and return the per-trial results as a DataFrame."""
        print(f"🔬 Benchmarking whitelist sizes {self.sizes} ({self.trials} trials, subsets of {self.subset_size})")
        rows = []
        for size in self.sizes:
            rows.extend(self._benchmark_size(size))

        self.results = pd.DataFrame(rows)
        if not self.results.empty and not self.results['verification_success'].all():
            print("  ⚠️ Some proofs failed verification")
        return self.results

    def summarize(self, df=None):
        """Mean metrics per whitelist size, plus the multiproof saving."""
        df = self.results if df is None else df
        if df.empty:
            return df
        summary = df.groupby('leaves').agg(
            build_time=('build_time', 'first'),
            tree_height=('tree_height', 'first'),
            single_proof_bytes=('single_proof_bytes', 'mean'),
            multiproof_bytes=('multiproof_bytes', 'mean'),
            single_calldata_gas=('single_calldata_gas', 'mean'),
            multiproof_calldata_gas=('multiproof_calldata_gas', 'mean'),
        ).reset_index()
        summary['bytes_saved_percent'] = np.where(
            summary['single_proof_bytes'] > 0,
            100.0 * (1 - summary['multiproof_bytes'] / summary['single_proof_bytes'].replace(0, np.nan)),
            0.0,
        )
        return summary

    def save_results(self, output_dir):
        """Write per-trial CSV, summary CSV and profiler JSON; return the paths."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        results_path = output_dir / "benchmark_results.csv"
        summary_path = output_dir / "benchmark_summary.csv"
        profile_path = output_dir / "build_profile.json"

        self.results.to_csv(results_path, index=False)
        self.summarize().to_csv(summary_path, index=False)
        with open(profile_path, 'w') as f:
            json.dump(self.profiler.get_summary(), f, indent=2)

        print(f"💾 Saved benchmark results to {output_dir}")
        return results_path, summary_path, profile_path
