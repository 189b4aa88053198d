"""
Upper Confidence bounds applied to Trees (UCT) for MDPs.

This module implements the UCT search that estimates the optimal expected
reward accumulated within a bounded horizon from the initial state of an
MDP. Each rollout:
1. Selection: At decision nodes, pick an action with the UCB1 rule
2. Expansion: Materialize the children of nodes visited for the first time
3. Sampling: At chance nodes, sample an outcome according to its probability
4. Backpropagation: Update the running mean return of every visited node

A rollout stops when the horizon is reached or a deadlock state (no
available actions) is encountered.
"""
from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Tuple
import math
import random
import time

from tqdm import tqdm

from mdp_uct.core.exceptions import DistributionError, UnsupportedInitialStateError
from mdp_uct.core.model import ModelGenerator
from mdp_uct.core.rewards import RewardStruct
from mdp_uct.mcts.config import UCTConfig
from mdp_uct.mcts.node import NodeKind, SearchNode, SearchTree


def uct_search(
    model: ModelGenerator,
    rewards: RewardStruct,
    config: Optional[UCTConfig] = None,
    rng: Optional[random.Random] = None,
    callback: Optional[Callable[[int, SearchTree], None]] = None
) -> Tuple[SearchTree, Dict[str, Any]]:
    """
    Run UCT from the initial state of a model.

    This function runs the full search:
    1. Create a root node from the model's single initial state
    2. Repeatedly run rollouts from the root, each with the exploration
       bias chosen by the configured bias policy
    3. Return the tree, whose root estimate is the result

    Args:
        model: Model to explore
        rewards: Reward structure defining the rewards of actions
        config: UCT configuration parameters
        rng: Random source for outcome sampling (defaults to one seeded
             with config.seed)
        callback: Optional function called after every rollout with the
                  iteration number and the tree

    Returns:
        Tuple of (search tree, search statistics)

    Raises:
        UnsupportedInitialStateError: If the model does not have exactly
                                      one initial state
    """
    if config is None:
        config = UCTConfig()

    if rng is None:
        rng = random.Random(config.seed)

    if not model.has_single_initial_state():
        raise UnsupportedInitialStateError(
            f"UCT requires a single initial state, "
            f"model has {len(model.get_initial_states())}"
        )

    # Create the root node
    tree = SearchTree()
    root = tree.create_root(model.get_initial_state())

    stats: Dict[str, Any] = {
        "iterations": 0,
        "time_elapsed": 0.0,
        "stopped_early": False,
    }
    if config.record_history:
        stats["estimate_history"] = []

    start_time = time.time()

    iterations = range(config.iterations)
    if config.show_progress:
        iterations = tqdm(iterations, desc="UCT rollouts")

    for i in iterations:
        # Check time limit if specified
        if config.time_limit is not None and time.time() - start_time > config.time_limit:
            stats["stopped_early"] = True
            break

        bias = get_bias(root, config)
        rollout(tree, root, config.depth, bias, model, rewards, rng,
                config.probability_tolerance)

        stats["iterations"] += 1
        if config.record_history:
            stats["estimate_history"].append(root.mean_return)
        if callback is not None:
            callback(i, tree)

    if config.show_progress:
        iterations.close()

    stats["time_elapsed"] = time.time() - start_time
    stats["iterations_per_second"] = stats["iterations"] / max(0.001, stats["time_elapsed"])
    stats["node_count"] = len(tree)
    stats["max_depth"] = tree.max_depth()
    stats["estimate"] = root.mean_return

    return tree, stats


def get_bias(root: SearchNode, config: UCTConfig) -> float:
    """
    Get the exploration bias for the next rollout.

    With the 'root_mean' policy the bias is the root's current estimate,
    which scales exploration to the magnitude of the rewards seen so far.

    Args:
        root: Root node of the search tree
        config: UCT configuration parameters

    Returns:
        Exploration bias
    """
    if config.bias_policy == "fixed":
        return config.fixed_bias
    return root.mean_return


def expand_node(tree: SearchTree, node: SearchNode, model: ModelGenerator) -> List[SearchNode]:
    """
    Create the children of a node.

    The model must currently be exploring the node's decision state.
    A decision node gets one chance child per available choice; a chance
    node gets one decision child per probabilistic outcome of its choice.

    Args:
        tree: Tree owning the node
        node: Unexpanded node
        model: Model being explored

    Returns:
        The new children
    """
    if node.expanded:
        raise ValueError(f"Node {node.index} has already been expanded")

    children = []
    if node.is_decision():
        for i in range(model.num_decisions()):
            children.append(tree.new_node(
                NodeKind.CHANCE,
                node,
                action_index=i,
                action_label=str(model.decision_label(i)),
            ))
    else:
        choice = node.action_index
        for offset in range(model.num_outcomes(choice)):
            prob = model.outcome_probability(choice, offset)
            succ_state = model.outcome_target(choice, offset)
            children.append(tree.new_node(
                NodeKind.DECISION,
                node,
                state=succ_state,
                action_index=choice,
                reach_probability=prob,
            ))

    tree.set_children(node, children)
    return children


def select_child(tree: SearchTree, node: SearchNode, bias: float) -> Optional[SearchNode]:
    """
    Select the action to try from a decision node using UCB1.

    Unvisited children are tried first, in order. Otherwise the child
    with the highest score is chosen, the first one winning ties.

    Args:
        tree: Tree owning the node
        node: Expanded decision node
        bias: Exploration bias

    Returns:
        Selected chance child, or None if the node has no children
    """
    best_child = None
    best_score = -math.inf

    for child in tree.children(node):
        score = child.uct_score(node.visit_count, bias)
        if score == math.inf:
            return child
        if best_child is None or score > best_score:
            best_score = score
            best_child = child

    return best_child


def sample_outcome(
    tree: SearchTree,
    node: SearchNode,
    rng: random.Random,
    tolerance: float = 1e-6
) -> SearchNode:
    """
    Sample the outcome of a chance node according to its probabilities.

    Args:
        tree: Tree owning the node
        node: Expanded chance node
        rng: Random source
        tolerance: Allowed deviation from 1 of the sum of the probabilities

    Returns:
        Sampled decision child

    Raises:
        DistributionError: If the outcome probabilities do not sum to 1,
                           including a choice without outcomes
    """
    children = tree.children(node)
    total = math.fsum(child.reach_probability for child in children)
    if abs(total - 1.0) > tolerance:
        raise DistributionError(
            f"Outcome probabilities of action '{node.action_label}' "
            f"in state {tree.decision_state(node)!r} sum to {total}"
        )

    sampled = rng.random()
    prob_sum = 0.0
    for child in children:
        prob_sum += child.reach_probability
        if child.reach_probability > 0 and prob_sum >= sampled:
            return child

    # Rounding left the cumulative sum just below the sample
    return next(child for child in reversed(children) if child.reach_probability > 0)


def rollout(
    tree: SearchTree,
    node: SearchNode,
    depth: int,
    bias: float,
    model: ModelGenerator,
    rewards: RewardStruct,
    rng: random.Random,
    tolerance: float = 1e-6
) -> float:
    """
    Simulate one trajectory from a node and backpropagate its return.

    Descending from the node, every node reached with remaining depth is
    expanded if needed and has its visit count incremented. Decision
    nodes choose an action with UCB1 without consuming depth; chance
    nodes earn the reward of their action, sample an outcome and consume
    one step. A decision node without actions ends the trajectory.

    On the way back, each visited node folds the reward accumulated from
    it onwards into its mean return.

    Args:
        tree: Tree owning the node
        node: Node to start from
        depth: Remaining number of steps
        bias: Exploration bias
        model: Model being explored
        rewards: Reward structure
        rng: Random source for outcome sampling
        tolerance: Allowed deviation of outcome probability sums from 1

    Returns:
        Total reward accumulated by the trajectory from the node
    """
    # Visited nodes and the immediate reward earned at each
    path: List[Tuple[SearchNode, float]] = []

    # A chance node is expanded against the state its action is taken from
    if node.is_chance() and depth > 0:
        model.explore_state(tree.decision_state(node))

    current: Optional[SearchNode] = node
    try:
        while current is not None and depth > 0:
            if current.is_decision():
                model.explore_state(current.state)
            if not current.expanded:
                expand_node(tree, current, model)
            current.increment_visits()
            path.append((current, 0.0))

            if current.is_decision():
                succ = select_child(tree, current, bias)
                if succ is None:
                    depth = 0
            else:
                reward = rewards.get_reward(tree.decision_state(current), current.action_label)
                succ = sample_outcome(tree, current, rng, tolerance)
                path[-1] = (current, reward)
                depth -= 1

            current = succ
    except Exception:
        # The rollout did not complete, so it counts as no visit
        for visited, _ in path:
            visited.visit_count -= 1
        raise

    total_return = 0.0
    for visited, reward in reversed(path):
        total_return += reward
        visited.update_mean_return(total_return)

    return total_return


def count_nodes(tree: SearchTree, node: Optional[SearchNode] = None) -> int:
    """
    Count the nodes of a subtree.

    Args:
        tree: Search tree
        node: Root of the subtree (defaults to the tree root)

    Returns:
        Total number of nodes
    """
    stack = [node or tree.root]
    count = 0
    while stack:
        current = stack.pop()
        count += 1
        stack.extend(tree.children(current))
    return count
