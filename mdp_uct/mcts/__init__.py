"""
UCT (Upper Confidence bounds applied to Trees) search for MDPs.

Each rollout descends from the root for a bounded number of steps:

1. Decision nodes pick an action with the UCB1 rule, trying every action
   once before revisiting any.
2. Chance nodes earn the reward of their action and sample an outcome
   according to its probability.
3. Nodes reached for the first time are expanded.
4. On the way back, every visited node updates the running mean of the
   reward accumulated from it.

The exploration bias is, by default, the root's current estimate, so
exploration scales with the rewards observed so far.
"""

from mdp_uct.mcts.node import NodeKind, SearchNode, SearchTree
from mdp_uct.mcts.config import UCTConfig
from mdp_uct.mcts.search import (
    uct_search,
    get_bias,
    expand_node,
    select_child,
    sample_outcome,
    rollout,
    count_nodes
)
from mdp_uct.mcts.policy import (
    PolicyStep,
    get_best_child,
    get_best_policy,
    get_best_policy_path,
    get_best_policy_leaf,
    build_dtmc,
    get_action_statistics
)
from mdp_uct.mcts.solver import UCTSolver

# Default configuration
DEFAULT_CONFIG = UCTConfig(
    iterations=10000,          # Number of rollouts per search
    depth=5,                   # Horizon in probabilistic steps
    bias_policy="root_mean",   # Exploration bias follows the root estimate
)

__all__ = [
    'NodeKind',
    'SearchNode',
    'SearchTree',
    'UCTConfig',
    'UCTSolver',
    'uct_search',
    'get_bias',
    'expand_node',
    'select_child',
    'sample_outcome',
    'rollout',
    'count_nodes',
    'PolicyStep',
    'get_best_child',
    'get_best_policy',
    'get_best_policy_path',
    'get_best_policy_leaf',
    'build_dtmc',
    'get_action_statistics',
    'DEFAULT_CONFIG'
]
