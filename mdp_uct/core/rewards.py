"""
Reward structures for MDPs.

A reward structure is a list of items, each made of a guard (a predicate
over states), an action label and a reward expression. Taking an action
from a state earns the sum of the rewards of all items whose guard holds
in that state and whose label is the action's label.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from mdp_uct.core.model import State

Constants = Dict[str, Any]
Guard = Callable[[State, Constants], bool]
RewardExpression = Callable[[State, Constants], float]


def _always(state: State, constants: Constants) -> bool:
    return True


@dataclass
class RewardItem:
    """
    A single (guard, action, reward) entry of a reward structure.
    """
    action: str
    """Action (synchronisation) label the item applies to"""

    reward: RewardExpression
    """Reward expression, evaluated on the state and the model constants"""

    guard: Guard = _always
    """Predicate over the state and constants selecting where the item applies"""

    @classmethod
    def constant(cls, action: str, value: float, guard: Optional[Guard] = None) -> 'RewardItem':
        """
        Create an item with a constant reward.

        Args:
            action: Action label
            value: Reward earned
            guard: Optional guard (defaults to true everywhere)

        Returns:
            RewardItem object
        """
        return cls(
            action=action,
            reward=lambda state, constants: value,
            guard=guard or _always
        )


@dataclass
class RewardStruct:
    """
    An ordered collection of reward items with the model constants they
    are evaluated against.
    """
    items: List[RewardItem] = field(default_factory=list)
    constants: Constants = field(default_factory=dict)
    name: str = ""

    def add_item(self, item: RewardItem) -> None:
        self.items.append(item)

    def set_constant_values(self, constants: Constants) -> None:
        """Set the values of model constants used by guards and expressions."""
        self.constants = dict(constants)

    @property
    def num_items(self) -> int:
        return len(self.items)

    def get_reward(self, state: State, action: str) -> float:
        """
        Get the reward for taking an action from a state.

        Args:
            state: State the action is taken from
            action: Action label

        Returns:
            Sum of the matching items' rewards (0.0 if nothing matches)
        """
        res = 0.0
        for item in self.items:
            if item.guard(state, self.constants) and item.action == action:
                res += float(item.reward(state, self.constants))
        return res

    def __call__(self, state: State, action: str) -> float:
        return self.get_reward(state, action)
