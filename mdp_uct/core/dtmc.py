"""
Discrete-time Markov chains.

The DTMC class is a sparse, explicitly built Markov chain. It is the
output format of policy extraction: fixing one action per reachable
decision point of the search tree turns the explored part of the MDP
into a DTMC that can be analysed exactly downstream.
"""
from __future__ import annotations
from collections import deque
from typing import Any, Dict, List
import math

import numpy as np

from mdp_uct.core.exceptions import DistributionError
from mdp_uct.core.model import State


class DTMC:
    """
    A discrete-time Markov chain with explicitly stored states.

    States are numbered 0..num_states-1 in the order they are added, and
    each index carries the model state it corresponds to.
    """

    def __init__(self):
        self._states: List[State] = []
        self._transitions: List[Dict[int, float]] = []
        self._initial_states: List[int] = []

    def add_state(self, state: State = None) -> int:
        """
        Add a new state.

        Args:
            state: Model state the new chain state corresponds to

        Returns:
            Index of the new state
        """
        self._states.append(state)
        self._transitions.append({})
        return len(self._states) - 1

    def add_initial_state(self, index: int) -> None:
        self._check_index(index)
        self._initial_states.append(index)

    def set_probability(self, src: int, dst: int, prob: float) -> None:
        """
        Set the probability of the transition src -> dst.

        A probability of 0 removes the transition.
        """
        self._check_index(src)
        self._check_index(dst)
        if prob == 0.0:
            self._transitions[src].pop(dst, None)
        else:
            self._transitions[src][dst] = prob

    def get_transitions(self, index: int) -> Dict[int, float]:
        """Get the successors of a state mapped to their probabilities."""
        self._check_index(index)
        return dict(self._transitions[index])

    def get_state(self, index: int) -> State:
        self._check_index(index)
        return self._states[index]

    @property
    def num_states(self) -> int:
        return len(self._states)

    @property
    def num_transitions(self) -> int:
        return sum(len(succs) for succs in self._transitions)

    @property
    def states_list(self) -> List[State]:
        return list(self._states)

    @property
    def initial_states(self) -> List[int]:
        return list(self._initial_states)

    def get_deadlock_states(self) -> List[int]:
        """Get the indices of states without outgoing transitions."""
        return [i for i, succs in enumerate(self._transitions) if not succs]

    def fix_deadlocks(self) -> List[int]:
        """
        Add a self-loop with probability 1 to every deadlock state.

        Returns:
            Indices of the states that were fixed
        """
        deadlocks = self.get_deadlock_states()
        for i in deadlocks:
            self._transitions[i][i] = 1.0
        return deadlocks

    def check_distributions(self, tolerance: float = 1e-6) -> None:
        """
        Check that the outgoing probabilities of each non-deadlock state sum to 1.

        Raises:
            DistributionError: For the first state that does not
        """
        for i, succs in enumerate(self._transitions):
            if not succs:
                continue
            total = math.fsum(succs.values())
            if abs(total - 1.0) > tolerance:
                raise DistributionError(
                    f"Outgoing probabilities of state {i} ({self._states[i]!r}) sum to {total}"
                )

    def depth(self) -> int:
        """
        Get the length of the longest path from an initial state.

        Only meaningful for acyclic chains (such as the ones produced by
        policy extraction); self-loops are ignored.
        """
        longest = 0
        queue = deque((i, 0) for i in self._initial_states)
        while queue:
            index, d = queue.popleft()
            longest = max(longest, d)
            for succ in self._transitions[index]:
                if succ != index:
                    queue.append((succ, d + 1))
        return longest

    def to_matrix(self) -> np.ndarray:
        """
        Get the dense transition matrix.

        Returns:
            Array of shape (num_states, num_states)
        """
        matrix = np.zeros((self.num_states, self.num_states), dtype=np.float64)
        for i, succs in enumerate(self._transitions):
            for j, prob in succs.items():
                matrix[i, j] = prob
        return matrix

    def initial_distribution(self) -> np.ndarray:
        """Uniform distribution over the initial states as a vector."""
        dist = np.zeros(self.num_states, dtype=np.float64)
        if self._initial_states:
            dist[self._initial_states] = 1.0 / len(self._initial_states)
        return dist

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the chain to a dictionary of plain Python values.

        Returns:
            Dictionary with states, initial states and transitions
        """
        return {
            "states": [repr(state) for state in self._states],
            "initial_states": list(self._initial_states),
            "transitions": [
                {"source": i, "target": j, "probability": prob}
                for i, succs in enumerate(self._transitions)
                for j, prob in sorted(succs.items())
            ],
        }

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._states):
            raise IndexError(f"State index {index} out of range (num_states={len(self._states)})")

    def __str__(self) -> str:
        return (f"DTMC(states={self.num_states}, "
                f"transitions={self.num_transitions}, "
                f"initial={self._initial_states})")
