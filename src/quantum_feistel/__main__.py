"""Main entry point: python -m quantum_feistel"""

from __future__ import annotations

import argparse
import csv
import logging
import os
from datetime import datetime

import numpy as np

from quantum_feistel import __version__
from quantum_feistel.analysis.metrics import MetricExtractor
from quantum_feistel.analysis.validation import TrialRunner, Validator
from quantum_feistel.core.detector import run_feistel_detect
from quantum_feistel.core.feistel import (
    expected_period,
    make_feistel_network,
    make_random_permutation,
    period_function,
)
from quantum_feistel.core.key_schedule import KeySchedule
from quantum_feistel.core.oracle import SimonSampler
from quantum_feistel.utils.bits import dot, format_bits
from quantum_feistel.utils.constants import (
    BUDGET_FACTOR,
    FEISTEL_ROUNDS,
    HALF_BITS,
    MAX_DISTRIBUTION_PLOT_BITS,
    PERMUTATION_SWAPS,
    SIMON_CHECK_PERIOD,
    SIMON_CHECK_SAMPLES,
    SIMON_CHECK_TABLE,
)
from quantum_feistel.utils.types import Classification, DetectionConfig, DetectionResult


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quantum-feistel",
        description="Quantum distinguisher for 3-round Feistel networks via Simon sampling",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every sampling round")

    sub = parser.add_subparsers(dest="command")

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--bits", type=int, default=HALF_BITS, help="Bits per Feistel half (default 8)")
        p.add_argument("--rounds", type=int, default=FEISTEL_ROUNDS, help="Feistel rounds")
        p.add_argument("--budget-factor", type=int, default=BUDGET_FACTOR,
                       help="Accepted rounds allowed = factor * bits")
        p.add_argument("--swaps", type=int, default=PERMUTATION_SWAPS,
                       help="Random transpositions per lookup table")
        p.add_argument("--seed", type=int, default=None, help="Seed for the random generator")

    # detect
    det = sub.add_parser("detect", help="Run detection on a Feistel network and a random permutation")
    add_common(det)
    det.add_argument("--keys", type=str, help="Round keys, comma separated (default random)")

    # trials
    tri = sub.add_parser("trials", help="Repeat detection and report classification rates")
    add_common(tri)
    tri.add_argument("--trials", type=int, default=50, help="Attempts per oracle type")
    tri.add_argument("--csv", action="store_true", help="Export results CSV to --out-dir")
    tri.add_argument("--plots", action="store_true", help="Write PNG plots to --out-dir")
    tri.add_argument("--out-dir", type=str, default=".", help="Output directory")

    # simon-check
    sc = sub.add_parser("simon-check", help="Verify Simon samples are orthogonal to a known period")
    sc.add_argument("--samples", type=int, default=SIMON_CHECK_SAMPLES, help="Number of samples")
    sc.add_argument("--seed", type=int, default=None, help="Seed for the random generator")

    # feistel-check
    fc = sub.add_parser("feistel-check", help="Encrypt and decrypt one random block")
    add_common(fc)
    fc.add_argument("--keys", type=str, help="Round keys, comma separated (default random)")

    return parser


def config_from_args(args: argparse.Namespace) -> DetectionConfig:
    return DetectionConfig(
        half_bits=args.bits,
        rounds=args.rounds,
        budget_factor=args.budget_factor,
        permutation_swaps=args.swaps,
        seed=args.seed,
    )


def get_keys(args: argparse.Namespace, rng: np.random.Generator) -> KeySchedule:
    """Resolve round keys from args."""
    if getattr(args, "keys", None):
        keys = KeySchedule(args.keys, bits=args.bits)
        if keys.rounds != args.rounds:
            raise SystemExit(f"Expected {args.rounds} round keys, got {keys.rounds}")
        return keys
    return KeySchedule.random(rng, rounds=args.rounds, bits=args.bits)


def print_result(result: DetectionResult) -> None:
    print(f"  Classification:  {result.label}")
    print(f"  Accepted rounds: {result.rounds} (rank {result.rank_history[-1] if result.rank_history else 0}/{result.width})")
    print(f"  Discarded:       {result.rejected}")
    if result.mask is not None:
        print(f"  Candidate mask:  0x{result.mask:x}")
    if "expected_mask" in result.metadata:
        print(f"  Expected mask:   0x{result.metadata['expected_mask']:x}")


def run_detect(args: argparse.Namespace) -> None:
    """Detect once against a Feistel network and once against a random permutation."""
    config = config_from_args(args)
    rng = np.random.default_rng(config.seed)
    keys = get_keys(args, rng)

    network = make_feistel_network(config.half_bits, config.rounds, rng, keys=keys.keys,
                                   swaps=config.permutation_swaps)
    permutation = make_random_permutation(config.half_bits, rng, swaps=config.permutation_swaps)

    print(f"Round keys: {keys.as_hex}")
    print(f"Block: {2 * config.half_bits} bits | Budget: {config.budget_factor * config.half_bits} rounds")
    print()

    print("Running detection for Feistel function:")
    print_result(run_feistel_detect(network, config.half_bits, rng, config.budget_factor))
    print()
    print("Running detection for random permutation function:")
    print_result(run_feistel_detect(permutation, config.half_bits, rng, config.budget_factor))


def run_trials(args: argparse.Namespace) -> None:
    """Repeat detection on fresh oracles: trials -> validate -> report."""
    config = config_from_args(args)
    runner = TrialRunner(config)

    print(f"Running {args.trials} Feistel trials...")
    feistel_results = runner.run_feistel(args.trials)
    print(f"Running {args.trials} random permutation trials...")
    random_results = runner.run_random(args.trials)

    feistel_summary = Validator(feistel_results, Classification.STRUCTURED).summary()
    random_summary = Validator(random_results, Classification.UNSTRUCTURED).summary()
    feistel_report = MetricExtractor(feistel_results).full_report()
    random_report = MetricExtractor(random_results).full_report()

    print()
    print("=" * 50)
    print(" RESULTS")
    print("=" * 50)
    for name, summary, report in (
        ("Feistel", feistel_summary, feistel_report),
        ("Random", random_summary, random_report),
    ):
        lo, hi = summary["confidence_interval"]
        print(f"  {name}:")
        print(f"    Correct rate:        {summary['classification_rate']:.4f}")
        print(f"    Confidence interval: ({lo:.3f}, {hi:.3f})")
        print(f"    Mean rounds:         {report['sampling']['rounds_mean']:.2f}")
        print(f"    Mean discarded:      {report['sampling']['rejected_mean']:.2f}")
    print(f"  Feistel mask recovery: {feistel_summary['mask_recovery_rate']:.4f}")
    print("=" * 50)

    if args.csv:
        export_csv(args.out_dir, {"feistel": feistel_summary, "random": random_summary},
                   {"feistel": feistel_report, "random": random_report})

    if args.plots:
        from quantum_feistel.visualization.plots import PlotSuite

        print("\nGenerating plots...")
        plots = PlotSuite(save_dir=args.out_dir)
        plots.rank_progression(feistel_results + random_results)
        plots.classification_rates([feistel_summary, random_summary])
        if config.half_bits + 1 <= MAX_DISTRIBUTION_PLOT_BITS:
            distribution, period = feistel_measurement_distribution(config, runner.rng)
            plots.measurement_distribution(distribution, period=period)
        else:
            print(f"Skipping measurement distribution for halves over {MAX_DISTRIBUTION_PLOT_BITS - 1} bits")
        print(f"Plots saved to {args.out_dir}")


def feistel_measurement_distribution(
    config: DetectionConfig, rng: np.random.Generator
) -> tuple[np.ndarray, int]:
    """First-register distribution for one fresh Feistel instance and its hidden period."""
    network = make_feistel_network(config.half_bits, config.rounds, rng,
                                   swaps=config.permutation_swaps)
    alpha = int(rng.integers(0, 1 << config.half_bits))
    beta = int(rng.integers(0, 1 << config.half_bits))
    function = period_function(network, config.half_bits, alpha, beta)
    sampler = SimonSampler(function, n_inputs=config.half_bits + 1, n_outputs=config.half_bits)
    return sampler.distribution, expected_period(network, alpha, beta)


def export_csv(out_dir: str, summaries: dict, reports: dict) -> str:
    """Write results to <out_dir>/quantum_feistel_<timestamp>.csv"""
    out_dir = os.path.expanduser(out_dir)
    os.makedirs(out_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = os.path.join(out_dir, f"quantum_feistel_{timestamp}.csv")

    with open(filepath, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["metric", "value"])
        for name, summary in summaries.items():
            writer.writerow([f"{name}_trials", summary["trials"]])
            writer.writerow([f"{name}_classification_rate", summary["classification_rate"]])
            writer.writerow([f"{name}_confidence_lo", summary["confidence_interval"][0]])
            writer.writerow([f"{name}_confidence_hi", summary["confidence_interval"][1]])
            writer.writerow([f"{name}_mask_recovery_rate", summary["mask_recovery_rate"]])
        for name, report in reports.items():
            for k, v in report.get("sampling", {}).items():
                writer.writerow([f"{name}_{k}", v])

    print(f"Results exported to {filepath}")
    return filepath


def run_simon_check(args: argparse.Namespace) -> bool:
    """Sample a known 2-to-1 function and check every outcome is orthogonal to its period."""
    rng = np.random.default_rng(args.seed)
    table = SIMON_CHECK_TABLE
    sampler = SimonSampler(lambda x: table[x], n_inputs=3, n_outputs=3)
    for y in sampler.sample_many(rng, args.samples):
        if dot(int(y), SIMON_CHECK_PERIOD):
            print(f"Failed for measurement: {format_bits(int(y), 3)}")
            return False
    print("Simon success")
    return True


def run_feistel_check(args: argparse.Namespace) -> bool:
    """Encrypt then decrypt a random block; the round trip must be exact."""
    rng = np.random.default_rng(args.seed)
    keys = get_keys(args, rng)
    network = make_feistel_network(args.bits, args.rounds, rng, keys=keys.keys, swaps=args.swaps)
    block = int(rng.integers(0, 1 << network.block_bits))

    encrypted = network.encrypt(block)
    decrypted = network.decrypt(encrypted)
    print(f"Input: {block}")
    print(f"Encrypted: {encrypted}")
    print(f"Decrypted: {decrypted}")
    return decrypted == block


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.command == "detect":
        run_detect(args)
    elif args.command == "trials":
        run_trials(args)
    elif args.command == "simon-check":
        if not run_simon_check(args):
            raise SystemExit(1)
    elif args.command == "feistel-check":
        if not run_feistel_check(args):
            raise SystemExit(1)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
