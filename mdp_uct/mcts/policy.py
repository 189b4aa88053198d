"""
Policy extraction from a finished UCT search tree.

These functions only read the tree. They report the greedy best policy
found by the search and build the discrete-time Markov chain induced by
fixing, at each decision node, the action with the highest estimate.
"""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Tuple

from mdp_uct.core.dtmc import DTMC
from mdp_uct.core.model import State
from mdp_uct.mcts.node import SearchNode, SearchTree


@dataclass
class PolicyStep:
    """One action of the greedy policy, with the search's estimate for it."""
    state: State
    action_label: str
    mean_return: float
    visit_count: int


def get_best_child(tree: SearchTree, node: SearchNode) -> Optional[SearchNode]:
    """
    Get the child with the highest mean return.

    Only visited children are considered, since the mean return of an
    unvisited node carries no information. The first child wins ties.

    Args:
        tree: Search tree
        node: Node whose children to compare

    Returns:
        Best child, or None if no child has been visited
    """
    best = None
    for child in tree.children(node):
        if child.visit_count == 0:
            continue
        if best is None or child.mean_return > best.mean_return:
            best = child
    return best


def get_best_policy_path(tree: SearchTree, node: Optional[SearchNode] = None) -> List[SearchNode]:
    """
    Walk the tree greedily from a node.

    At every node, decision or chance, move to the child with the highest
    mean return until a node without visited children is reached.

    Args:
        tree: Search tree
        node: Starting node (defaults to the root)

    Returns:
        Nodes along the walk, starting with the starting node
    """
    current = node or tree.root
    path = [current]
    while True:
        best = get_best_child(tree, current)
        if best is None:
            return path
        path.append(best)
        current = best


def get_best_policy(tree: SearchTree, node: Optional[SearchNode] = None) -> List[PolicyStep]:
    """
    Get the sequence of actions the search currently believes is best.

    Args:
        tree: Search tree
        node: Starting node (defaults to the root)

    Returns:
        One PolicyStep for every action along the greedy walk
    """
    return [
        PolicyStep(
            state=tree.decision_state(n),
            action_label=n.action_label,
            mean_return=n.mean_return,
            visit_count=n.visit_count,
        )
        for n in get_best_policy_path(tree, node)
        if n.is_chance()
    ]


def get_best_policy_leaf(tree: SearchTree, node: Optional[SearchNode] = None) -> SearchNode:
    """Get the node where the greedy walk from a node ends."""
    return get_best_policy_path(tree, node)[-1]


def build_dtmc(tree: SearchTree, node: Optional[SearchNode] = None) -> DTMC:
    """
    Build the Markov chain induced by the greedy policy.

    The tree is traversed breadth first from the node. For each decision
    node, the best action is fixed and every outcome of that action
    becomes a new chain state, reached with the outcome's probability.
    States are never merged, so the chain is an unrolled tree that is no
    deeper than the search horizon.

    Args:
        tree: Search tree
        node: Decision node to start from (defaults to the root)

    Returns:
        DTMC whose initial state corresponds to the starting node
    """
    node = node or tree.root
    if not node.is_decision():
        raise ValueError("The induced chain must be built from a decision node")

    dtmc = DTMC()
    index = dtmc.add_state(node.state)
    dtmc.add_initial_state(index)

    queue: Deque[Tuple[SearchNode, int]] = deque([(node, index)])
    while queue:
        current, current_index = queue.popleft()

        best_action = get_best_child(tree, current)
        if best_action is None:
            continue

        for succ in tree.children(best_action):
            if succ.reach_probability == 0:
                continue
            succ_index = dtmc.add_state(succ.state)
            dtmc.set_probability(current_index, succ_index, succ.reach_probability)
            queue.append((succ, succ_index))

    return dtmc


def get_action_statistics(
    tree: SearchTree,
    node: Optional[SearchNode] = None,
    bias: Optional[float] = None
) -> List[Dict[str, Any]]:
    """
    Get statistics for every action of a decision node.

    Args:
        tree: Search tree
        node: Decision node (defaults to the root)
        bias: Exploration bias for the UCB1 score (defaults to the root's
              current estimate)

    Returns:
        One dictionary per action, in choice order
    """
    node = node or tree.root
    if bias is None:
        bias = tree.root.mean_return

    result = []
    for child in tree.children(node):
        result.append({
            "action": child.action_label,
            "index": child.action_index,
            "visits": child.visit_count,
            "value": child.mean_return,
            "score": child.uct_score(node.visit_count, bias),
        })
    return result
