"""
blocknlp Command-Line Interface

Solves the bundled toy problem; useful as a smoke test of an installation.
"""

import sys
import argparse
import json
import time

from .solvers import ScipySolver, SolverConfig, SUPPORTED_METHODS
from .toy import build_toy_problem
from .utils.logging_utils import get_logger


def cmd_solve(args):
    """Solve the toy problem."""
    logger = get_logger("blocknlp", "DEBUG" if args.verbose else "INFO")

    nlp = build_toy_problem()
    config = SolverConfig(method=args.method, max_iter=args.max_iter, tol=args.tol)

    start = time.time()
    result = ScipySolver(config).solve(nlp)
    elapsed = time.time() - start

    nlp.print_current()
    logger.info("Solution: %s", result.x)
    logger.info("Cost: %.6e", result.cost)
    logger.info("Iterations: %d (%d saved)", result.n_iter, nlp.get_iteration_count())
    logger.info("Time: %.3fs", elapsed)

    if args.output:
        output_data = result.to_dict()
        output_data['method'] = args.method
        output_data['time'] = elapsed
        output_data['layout'] = {
            'variables': nlp.variables.layout(),
            'constraints': nlp.constraints.layout(),
        }
        with open(args.output, 'w') as f:
            json.dump(output_data, f, indent=2)
        logger.info("Results saved to: %s", args.output)

    return 0 if result.success else 1


def cmd_version(args):
    """Print version information."""
    from . import __version__
    print(f"blocknlp {__version__}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='blocknlp',
        description='blocknlp - block-structured NLP formulation'
    )
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    solve_parser = subparsers.add_parser('solve', help='Solve the toy problem')
    solve_parser.add_argument('--method', '-m', choices=list(SUPPORTED_METHODS),
                              default='SLSQP', help='scipy method (default: SLSQP)')
    solve_parser.add_argument('--max-iter', '-n', type=int, default=200,
                              help='Max iterations (default: 200)')
    solve_parser.add_argument('--tol', type=float, default=1e-8,
                              help='Tolerance (default: 1e-8)')
    solve_parser.add_argument('--output', '-o', type=str,
                              help='Output JSON file')
    solve_parser.add_argument('--verbose', '-v', action='store_true',
                              help='Log block assembly details')
    solve_parser.set_defaults(func=cmd_solve)

    ver_parser = subparsers.add_parser('version', help='Print version')
    ver_parser.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
