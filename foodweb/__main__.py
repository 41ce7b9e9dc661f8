"""
Command line entry point.

Usage:
    python -m foodweb data/ --output-dir output/
    python -m foodweb data/legacy --legacy --steps 50 --seed 7
"""

import argparse
import sys
from pathlib import Path

from .loader import DataLoadError
from .simulation import FoodWebSimulation
from .constants import DEFAULT_OUTPUT_DIR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='foodweb',
        description='Grid-based food web simulation (plants, herbivores, carnivores)')
    parser.add_argument('data_root', type=Path,
                        help='Data pack directory')
    parser.add_argument('--legacy', action='store_true',
                        help='Read world.txt, genotypes.txt and settings.txt instead of YAML')
    parser.add_argument('--steps', '-n', type=int, default=None,
                        help='Override max_steps from settings')
    parser.add_argument('--seed', '-s', type=int, default=None,
                        help='Override run seed from settings')
    parser.add_argument('--output-dir', '-o', type=Path, default=None,
                        help=f'Output directory (default: settings output_dir or {DEFAULT_OUTPUT_DIR})')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Suppress progress output')
    return parser


def main(argv=None) -> int:
    """Main entry point: load data pack, run simulation, write outputs."""
    args = build_parser().parse_args(argv)
    verbose = not args.quiet

    try:
        sim = FoodWebSimulation.from_data_root(
            args.data_root, legacy=args.legacy, seed=args.seed, verbose=verbose)
    except DataLoadError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    output_dir = args.output_dir or sim.settings.output_dir or DEFAULT_OUTPUT_DIR
    sim.output_dir = Path(output_dir)

    sim.run(max_steps=args.steps)

    if verbose:
        stats = sim.get_population_stats()
        print(f"[OK] {stats.step} steps | plants={stats.plants} animals={stats.animals} | "
              f"meals={sim.ledger.total_meals} | outputs in {sim.output_dir}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
