"""
UCT solver for MDP reward estimation.

This module provides the UCTSolver class, a ready-to-use front object
that runs UCT on a model and reward structure, keeps the resulting tree
and statistics, and extracts the best policy and its induced Markov chain.
"""
from typing import Any, Dict, List, Optional
import json
import math
import random

from mdp_uct.core.dtmc import DTMC
from mdp_uct.core.model import ModelGenerator
from mdp_uct.core.rewards import RewardStruct
from mdp_uct.mcts.config import UCTConfig
from mdp_uct.mcts.node import SearchTree
from mdp_uct.mcts.policy import (
    PolicyStep, build_dtmc, get_action_statistics, get_best_policy
)
from mdp_uct.mcts.search import uct_search


class UCTSolver:
    """
    Estimates the optimal bounded-horizon reward of an MDP with UCT.

    The solver can be run several times; each run builds a fresh tree,
    and the tree and statistics of the most recent run are kept for
    policy extraction.
    """

    def __init__(
        self,
        model: ModelGenerator,
        rewards: RewardStruct,
        config: Optional[UCTConfig] = None,
        name: str = "UCT",
        verbose: bool = False,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize a UCT solver.

        Args:
            model: Model to explore
            rewards: Reward structure to maximize
            config: UCT configuration parameters
            name: Name of the solver
            verbose: Whether to print a summary after each search
            rng: Random source shared by all searches of this solver
                 (defaults to one seeded with config.seed)
        """
        self.model = model
        self.rewards = rewards
        self.config = config or UCTConfig()
        self.name = name
        self.verbose = verbose
        self.rng = rng if rng is not None else random.Random(self.config.seed)

        # Statistics from the most recent search
        self.last_stats: Dict[str, Any] = {}

        # Tree of the last search
        self.last_tree: Optional[SearchTree] = None

        # Estimates of all searches so far
        self.history: List[float] = []

    def solve(self) -> float:
        """
        Run UCT and return the estimated optimal expected reward.

        Returns:
            Mean return observed at the root
        """
        tree, stats = uct_search(self.model, self.rewards, self.config, rng=self.rng)

        self.last_tree = tree
        self.last_stats = stats
        self.history.append(stats["estimate"])

        if self.verbose:
            self._print_search_info(stats)

        return stats["estimate"]

    def _require_tree(self) -> SearchTree:
        if self.last_tree is None:
            raise ValueError("No search has been run yet; call solve() first")
        return self.last_tree

    def _print_search_info(self, stats: Dict[str, Any]) -> None:
        """
        Print information about the search.

        Args:
            stats: Search statistics
        """
        print(f"\n{self.name} estimate: {stats['estimate']:.6f}")
        print(f"Iterations: {stats['iterations']}"
              + (" (stopped early)" if stats["stopped_early"] else ""))
        print(f"Time: {stats['time_elapsed']:.3f}s ({stats['iterations_per_second']:.1f} it/s)")
        print(f"Nodes: {stats['node_count']}")
        print(f"Max depth: {stats['max_depth']}")

        actions = sorted(self.get_action_statistics(), key=lambda a: a["visits"], reverse=True)
        if actions:
            print("\nTop actions:")
            for i, action in enumerate(actions[:5]):
                print(f"{i+1}. {action['action']} - {action['visits']} visits, "
                      f"{action['value']:.3f} value")

    def get_last_statistics(self) -> Dict[str, Any]:
        """
        Get statistics from the most recent search.

        Returns:
            Dictionary of search statistics
        """
        return self.last_stats

    def get_best_policy(self) -> List[PolicyStep]:
        """
        Get the greedy best policy from the last search.

        Returns:
            List of policy steps from the initial state
        """
        return get_best_policy(self._require_tree())

    def build_dtmc(self) -> DTMC:
        """
        Build the Markov chain induced by the best policy of the last search.

        Returns:
            DTMC rooted at the initial state
        """
        return build_dtmc(self._require_tree())

    def get_action_statistics(self) -> List[Dict[str, Any]]:
        """
        Get statistics for all actions of the initial state from the last search.

        Returns:
            One dictionary per action
        """
        if self.last_tree is None:
            return []
        return get_action_statistics(self.last_tree)

    def reset_statistics(self) -> None:
        """Reset all statistics."""
        self.last_stats = {}
        self.last_tree = None
        self.history = []

    def save_statistics(self, filename: str) -> None:
        """
        Save statistics to a file.

        Args:
            filename: Name of the file to save to
        """
        policy = []
        if self.last_tree is not None:
            policy = [
                {
                    "state": repr(step.state),
                    "action": step.action_label,
                    "value": step.mean_return,
                    "visits": step.visit_count,
                }
                for step in self.get_best_policy()
            ]

        # Unvisited actions have an infinite score, which is not valid JSON
        actions = [
            dict(action, score=None if math.isinf(action["score"]) else action["score"])
            for action in self.get_action_statistics()
        ]

        data = {
            "solver_name": self.name,
            "config": self.config.to_dict(),
            "stats": {k: v for k, v in self.last_stats.items() if not isinstance(v, list)},
            "actions": actions,
            "policy": policy,
            "history": self.history,
        }

        with open(filename, 'w') as f:
            json.dump(data, f, indent=2, allow_nan=False)

    def __str__(self) -> str:
        return f"{self.name} (UCT, {self.config.iterations} iterations, depth {self.config.depth})"
