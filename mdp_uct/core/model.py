"""
Model exploration for Markov decision processes.

This module defines the ModelGenerator interface through which the UCT
search explores a model one state at a time, and ExplicitMDP, an
in-memory model built from an explicit list of choices per state.

A model is explored by first calling explore_state() and then querying
the choices (decisions) available in that state and the probabilistic
outcomes of each choice.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple
import math

from mdp_uct.core.exceptions import DistributionError, ExplorationError

State = Hashable
"""A model state. Any hashable value (tuple, int, frozen dataclass, ...)"""


class ModelGenerator(ABC):
    """
    Interface for exploring an MDP state by state.

    Subclasses only need to answer queries about the state most recently
    passed to explore_state().
    """

    @abstractmethod
    def get_initial_states(self) -> List[State]:
        """
        Get all initial states of the model.

        Returns:
            List of initial states
        """

    def has_single_initial_state(self) -> bool:
        """
        Check whether the model has exactly one initial state.

        Returns:
            True if there is exactly one initial state, False otherwise
        """
        return len(self.get_initial_states()) == 1

    def get_initial_state(self) -> State:
        """
        Get the initial state of the model.

        Returns:
            The first initial state

        Raises:
            ExplorationError: If the model has no initial state
        """
        initial_states = self.get_initial_states()
        if not initial_states:
            raise ExplorationError("Model has no initial state")
        return initial_states[0]

    @abstractmethod
    def explore_state(self, state: State) -> None:
        """
        Make subsequent queries apply to the given state.

        Args:
            state: State to explore
        """

    @abstractmethod
    def get_explore_state(self) -> Optional[State]:
        """Get the state currently being explored (None if none yet)."""

    @abstractmethod
    def num_decisions(self) -> int:
        """Get the number of choices available in the explored state."""

    @abstractmethod
    def decision_label(self, i: int) -> str:
        """Get the action label of choice i of the explored state."""

    @abstractmethod
    def num_outcomes(self, i: int) -> int:
        """Get the number of probabilistic outcomes of choice i."""

    @abstractmethod
    def outcome_probability(self, i: int, offset: int) -> float:
        """Get the probability of outcome `offset` of choice i."""

    @abstractmethod
    def outcome_target(self, i: int, offset: int) -> State:
        """Get the successor state of outcome `offset` of choice i."""


@dataclass
class Choice:
    """
    A labelled choice of an explicit MDP state.

    Outcomes are stored as (probability, target) pairs, in the order
    they were given.
    """
    label: str
    outcomes: List[Tuple[float, State]] = field(default_factory=list)

    def total_probability(self) -> float:
        """Sum of the outcome probabilities."""
        return math.fsum(prob for prob, _ in self.outcomes)


class ExplicitMDP(ModelGenerator):
    """
    An MDP given explicitly as a mapping from states to their choices.

    States that are reachable but have no choices added are deadlocks:
    they offer zero decisions.
    """

    def __init__(self, initial_states: Optional[Sequence[State]] = None):
        """
        Initialize an explicit MDP.

        Args:
            initial_states: Initial states of the model (can also be added later)
        """
        self._initial_states: List[State] = list(initial_states or [])
        self._choices: Dict[State, List[Choice]] = {}
        self._explore_state: Optional[State] = None
        self._explored = False

    @classmethod
    def from_dict(cls, model_dict: Dict[str, Any]) -> 'ExplicitMDP':
        """
        Create a model from a dictionary.

        The dictionary has an "initial" entry (a state, or a list of states
        under "initial_states") and a "choices" entry mapping each state to
        a list of {"label": ..., "outcomes": [[prob, target], ...]} entries.

        Args:
            model_dict: Dictionary describing the model

        Returns:
            ExplicitMDP object
        """
        if "initial_states" in model_dict:
            initial_states = list(model_dict["initial_states"])
        elif "initial" in model_dict:
            initial_states = [model_dict["initial"]]
        else:
            initial_states = []

        model = cls(initial_states=initial_states)
        for state, choices in model_dict.get("choices", {}).items():
            model.add_state(state)
            for choice in choices:
                outcomes = [(float(prob), target) for prob, target in choice["outcomes"]]
                model.add_choice(state, choice.get("label", ""), outcomes)
        return model

    def add_initial_state(self, state: State) -> None:
        """Add an initial state."""
        self._initial_states.append(state)
        self.add_state(state)

    def add_state(self, state: State) -> None:
        """Add a state without any choices (if not already present)."""
        self._choices.setdefault(state, [])

    def add_choice(
        self,
        state: State,
        label: str,
        outcomes: Sequence[Tuple[float, State]]
    ) -> int:
        """
        Add a choice to a state.

        Args:
            state: State offering the choice
            label: Action label of the choice
            outcomes: Sequence of (probability, target state) pairs

        Returns:
            Index of the new choice within the state
        """
        for prob, target in outcomes:
            if prob < 0.0 or prob > 1.0:
                raise ValueError(f"Probability {prob} of choice '{label}' is not in [0, 1]")
            self.add_state(target)

        choices = self._choices.setdefault(state, [])
        choices.append(Choice(label=label, outcomes=list(outcomes)))
        return len(choices) - 1

    @property
    def states(self) -> List[State]:
        """All states known to the model, in insertion order."""
        return list(self._choices.keys())

    @property
    def num_states(self) -> int:
        return len(self._choices)

    def get_choices(self, state: State) -> List[Choice]:
        """Get the choices of a state (empty for deadlocks)."""
        if state not in self._choices:
            raise ExplorationError(f"Unknown state {state!r}")
        return self._choices[state]

    def validate(self, tolerance: float = 1e-6) -> None:
        """
        Check that every choice has a probability distribution over outcomes.

        Args:
            tolerance: Allowed deviation of each sum from 1

        Raises:
            DistributionError: Listing every offending choice
        """
        problems = []
        for state, choices in self._choices.items():
            for choice in choices:
                total = choice.total_probability()
                if abs(total - 1.0) > tolerance:
                    problems.append(f"{state!r}/{choice.label}: {total}")

        if problems:
            raise DistributionError(
                "Outcome probabilities do not sum to 1 for: " + ", ".join(problems)
            )

    # ModelGenerator interface

    def get_initial_states(self) -> List[State]:
        return list(self._initial_states)

    def explore_state(self, state: State) -> None:
        if state not in self._choices:
            raise ExplorationError(f"Cannot explore unknown state {state!r}")
        self._explore_state = state
        self._explored = True

    def get_explore_state(self) -> Optional[State]:
        return self._explore_state

    def _current_choices(self) -> List[Choice]:
        if not self._explored:
            raise ExplorationError("No state has been explored yet")
        return self._choices[self._explore_state]

    def _choice(self, i: int) -> Choice:
        choices = self._current_choices()
        if i < 0 or i >= len(choices):
            raise IndexError(f"Choice index {i} out of range for state {self._explore_state!r}")
        return choices[i]

    def num_decisions(self) -> int:
        return len(self._current_choices())

    def decision_label(self, i: int) -> str:
        return self._choice(i).label

    def num_outcomes(self, i: int) -> int:
        return len(self._choice(i).outcomes)

    def outcome_probability(self, i: int, offset: int) -> float:
        return self._choice(i).outcomes[offset][0]

    def outcome_target(self, i: int, offset: int) -> State:
        return self._choice(i).outcomes[offset][1]

    def __str__(self) -> str:
        num_choices = sum(len(choices) for choices in self._choices.values())
        return (f"ExplicitMDP(states={self.num_states}, "
                f"choices={num_choices}, "
                f"initial={len(self._initial_states)})")
