#!/usr/bin/env python
"""
Demonstration script for UCT reward estimation on example MDPs.

This script runs the UCT solver on one of the built-in example models,
prints the estimate, the best policy and the induced Markov chain, and
can plot how the estimate converges over the rollouts.

Example usage:
    # Estimate the maintenance MDP's reward over 10 steps
    python demo_uct.py --model maintenance --depth 10 --iterations 5000

    # Compare the self-scaling bias with a fixed one and plot convergence
    python demo_uct.py --model gamble --bias fixed --fixed-bias 2.0 --plot convergence.png
"""
import os
import argparse
import time

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from mdp_uct.core.examples import create_chain_mdp, create_gamble_mdp, create_maintenance_mdp
from mdp_uct.mcts.config import UCTConfig
from mdp_uct.mcts.solver import UCTSolver

MODELS = {
    "chain": create_chain_mdp,
    "maintenance": create_maintenance_mdp,
    "gamble": create_gamble_mdp,
}


def parse_args():
    """Parse command-line arguments for demo configuration."""
    parser = argparse.ArgumentParser(description="Estimate bounded-horizon rewards of example MDPs with UCT")

    parser.add_argument("--model", type=str, default="maintenance",
                        choices=sorted(MODELS),
                        help="Example model to solve")
    parser.add_argument("--depth", type=int, default=5,
                        help="Horizon in steps")
    parser.add_argument("--iterations", type=int, default=10000,
                        help="Number of rollouts")
    parser.add_argument("--bias", type=str, default="root_mean",
                        choices=list(UCTConfig.BIAS_POLICIES),
                        help="Exploration bias policy")
    parser.add_argument("--fixed-bias", type=float, default=1.41,
                        help="Exploration bias when --bias is fixed")
    parser.add_argument("--time-limit", type=float, default=None,
                        help="Optional time limit in seconds")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for reproducibility")
    parser.add_argument("--plot", type=str, default=None,
                        help="Save a convergence plot of the estimate to this file")
    parser.add_argument("--save-stats", type=str, default=None,
                        help="Save search statistics to this JSON file")
    parser.add_argument("--verbose", action="store_true",
                        help="Print search details")

    return parser.parse_args()


def plot_convergence(history, path: str, title: str) -> None:
    """
    Plot the root estimate after each rollout.

    Args:
        history: Root estimate after each rollout
        path: Output image file
        title: Plot title
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    plt.figure(figsize=(10, 6))
    plt.plot(history)
    plt.title(title)
    plt.xlabel("Rollout")
    plt.ylabel("Estimated reward")
    plt.savefig(path)
    plt.close()


def run_demo(args):
    """Run the solver with the given arguments and print its results."""
    model, rewards = MODELS[args.model]()

    config = UCTConfig(
        iterations=args.iterations,
        depth=args.depth,
        bias_policy=args.bias,
        fixed_bias=args.fixed_bias,
        time_limit=args.time_limit,
        seed=args.seed,
        show_progress=not args.verbose,
        record_history=args.plot is not None,
    )
    solver = UCTSolver(model, rewards, config=config, name=f"UCT[{args.model}]", verbose=args.verbose)

    print(f"Model: {model}")
    print(f"Solver: {solver}")

    start_time = time.time()
    estimate = solver.solve()
    elapsed = time.time() - start_time

    print(f"\nEstimated optimal reward within {args.depth} steps: {estimate:.6f}")
    print(f"Search took {elapsed:.2f}s")

    print("\nBest policy:")
    for i, step in enumerate(solver.get_best_policy()):
        print(f"  {i+1}. in {step.state!r}: {step.action_label} "
              f"(value {step.mean_return:.3f}, {step.visit_count} visits)")

    dtmc = solver.build_dtmc()
    print(f"\nInduced chain: {dtmc}")
    print(f"  Depth: {dtmc.depth()}")
    print(f"  Deadlocks: {len(dtmc.get_deadlock_states())}")

    if args.plot:
        plot_convergence(
            solver.get_last_statistics()["estimate_history"],
            args.plot,
            f"UCT estimate for {args.model} (depth {args.depth})"
        )
        print(f"\nConvergence plot saved to {args.plot}")

    if args.save_stats:
        solver.save_statistics(args.save_stats)
        print(f"Statistics saved to {args.save_stats}")


def main():
    args = parse_args()
    run_demo(args)


if __name__ == "__main__":
    main()
