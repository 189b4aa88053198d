"""
UCT search tree nodes.

This module defines the SearchNode class, which represents a node of the
UCT search tree, and the SearchTree arena that owns all nodes of one
search. Nodes refer to their parent and children by arena index only.

There are two kinds of nodes:
- Decision nodes represent "we are in state S and must pick an action".
- Chance nodes represent "an action has been picked and its probabilistic
  outcome is being resolved". They carry no state of their own; the state
  the action was taken from is the state of the parent decision node.
"""
from __future__ import annotations
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional
import math

from mdp_uct.core.model import State


class NodeKind(Enum):
    """Kind of a search tree node."""
    DECISION = "decision"
    CHANCE = "chance"


class SearchNode:
    """
    A node in the UCT search tree.

    Each node tracks the number of rollouts that passed through it and
    the running mean of the total reward-to-go observed by those rollouts.
    """

    def __init__(
        self,
        index: int,
        kind: NodeKind,
        state: Optional[State] = None,
        parent: Optional[int] = None,
        action_index: int = -1,
        action_label: Optional[str] = None,
        reach_probability: Optional[float] = None,
    ):
        """
        Initialize a search node.

        Args:
            index: Position of the node in its tree's arena
            kind: Decision or chance node
            state: MDP state (decision nodes only)
            parent: Arena index of the parent (None for the root)
            action_index: Index of the choice this node belongs to (-1 for the root)
            action_label: Label of the choice (chance nodes only)
            reach_probability: Probability of the outcome that leads to this
                node (decision children of chance nodes only)
        """
        self.index = index
        self.kind = kind
        self.state = state
        self.parent = parent
        self.action_index = action_index
        self.action_label = action_label
        self.reach_probability = reach_probability

        # Node statistics
        self.visit_count = 0
        self.mean_return = 0.0
        self.expanded = False
        self.children: Optional[List[int]] = None

    def is_decision(self) -> bool:
        return self.kind is NodeKind.DECISION

    def is_chance(self) -> bool:
        return self.kind is NodeKind.CHANCE

    def is_root(self) -> bool:
        return self.parent is None

    def has_children(self) -> bool:
        """Check whether the node has been expanded into at least one child."""
        return bool(self.children)

    @property
    def num_children(self) -> int:
        return len(self.children) if self.children is not None else 0

    def increment_visits(self) -> None:
        self.visit_count += 1

    def update_mean_return(self, total_return: float) -> None:
        """
        Fold the return of one rollout into the running mean.

        Must be called after increment_visits() for the same rollout, so
        that visit_count already counts it.

        Args:
            total_return: Total reward-to-go observed by the rollout
        """
        n = self.visit_count
        self.mean_return = ((n - 1) * self.mean_return + total_return) / n

    def uct_score(self, parent_visits: int, bias: float) -> float:
        """
        Calculate the UCB1 score of this node as a child of a decision node.

        UCB1 = bias * sqrt(ln(parent_visits) / visits) + mean_return

        Args:
            parent_visits: Visit count of the parent decision node
            bias: Exploration bias

        Returns:
            UCB1 score (infinite for unvisited nodes)
        """
        if self.visit_count == 0:
            return math.inf
        return bias * math.sqrt(math.log(parent_visits) / self.visit_count) + self.mean_return

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "kind": self.kind.value,
            "state": repr(self.state) if self.state is not None else None,
            "action_index": self.action_index,
            "action_label": self.action_label,
            "reach_probability": self.reach_probability,
            "visit_count": self.visit_count,
            "mean_return": self.mean_return,
            "expanded": self.expanded,
        }

    def __str__(self) -> str:
        what = f"state={self.state!r}" if self.is_decision() else f"action={self.action_label!r}"
        return (f"SearchNode({self.kind.value}, {what}, "
                f"visits={self.visit_count}, "
                f"mean={self.mean_return:.4f}, "
                f"children={self.num_children if self.expanded else 'unexpanded'})")


class SearchTree:
    """
    Arena owning every node of one UCT search.

    Nodes are only ever appended; a node's children are assigned exactly
    once, when it is expanded. Identical states reached along different
    paths are distinct nodes.
    """

    def __init__(self):
        self._nodes: List[SearchNode] = []

    def create_root(self, state: State) -> SearchNode:
        """
        Create the root decision node.

        Args:
            state: Initial state of the model

        Returns:
            The root node
        """
        if self._nodes:
            raise ValueError("Tree already has a root")
        node = SearchNode(index=0, kind=NodeKind.DECISION, state=state)
        self._nodes.append(node)
        return node

    @property
    def root(self) -> SearchNode:
        if not self._nodes:
            raise ValueError("Tree has no root")
        return self._nodes[0]

    def new_node(self, kind: NodeKind, parent: SearchNode, **kwargs) -> SearchNode:
        """
        Append a new node to the arena (it is not yet attached to its parent).

        Args:
            kind: Decision or chance node
            parent: Parent node
            **kwargs: Remaining SearchNode attributes

        Returns:
            The new node
        """
        node = SearchNode(index=len(self._nodes), kind=kind, parent=parent.index, **kwargs)
        self._nodes.append(node)
        return node

    def set_children(self, node: SearchNode, children: List[SearchNode]) -> None:
        """
        Attach the children of a node and mark it expanded.

        Raises:
            ValueError: If the node already has children assigned
        """
        if node.expanded:
            raise ValueError(f"Node {node.index} has already been expanded")
        node.children = [child.index for child in children]
        node.expanded = True

    def node(self, index: int) -> SearchNode:
        return self._nodes[index]

    def children(self, node: SearchNode) -> List[SearchNode]:
        """Get the child nodes of a node (empty if not expanded)."""
        if not node.children:
            return []
        return [self._nodes[i] for i in node.children]

    def parent(self, node: SearchNode) -> Optional[SearchNode]:
        if node.parent is None:
            return None
        return self._nodes[node.parent]

    def decision_state(self, node: SearchNode) -> State:
        """
        Get the state a node's decision is made in.

        For a decision node this is its own state; for a chance node it
        is the state of its parent decision node.
        """
        if node.is_decision():
            return node.state
        return self._nodes[node.parent].state

    def depth(self, node: SearchNode) -> int:
        """Get the number of chance nodes on the path from the root to a node, excluding the node itself."""
        d = 0
        current = self.parent(node)
        while current is not None:
            if current.is_chance():
                d += 1
            current = self.parent(current)
        return d

    def max_depth(self) -> int:
        """Get the largest depth of any decision node in the tree."""
        if not self._nodes:
            return 0
        longest = 0
        stack = [(self.root, 0)]
        while stack:
            node, d = stack.pop()
            longest = max(longest, d)
            for child in self.children(node):
                stack.append((child, d + 1 if child.is_decision() else d))
        return longest

    def snapshot(self, node: Optional[SearchNode] = None) -> Dict[str, Any]:
        """
        Dump a subtree as nested dictionaries.

        Args:
            node: Root of the subtree (defaults to the tree root)

        Returns:
            Nested dictionary of node attributes and children
        """
        node = node or self.root
        data = node.to_dict()
        data["children"] = []
        stack = [(node, data)]
        while stack:
            current, current_data = stack.pop()
            for child in self.children(current):
                child_data = child.to_dict()
                child_data["children"] = []
                current_data["children"].append(child_data)
                stack.append((child, child_data))
        return data

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[SearchNode]:
        return iter(self._nodes)

    def __str__(self) -> str:
        return f"SearchTree(nodes={len(self._nodes)})"
