"""
mdp-uct core package

This package contains the collaborators the UCT search works with:
- Model exploration (ModelGenerator interface and explicit MDPs)
- Reward structures
- Discrete-time Markov chains produced by policy extraction
- Exceptions
"""

from mdp_uct.core.exceptions import (
    UCTError, UnsupportedInitialStateError, ExplorationError, DistributionError
)
from mdp_uct.core.model import State, ModelGenerator, Choice, ExplicitMDP
from mdp_uct.core.rewards import RewardItem, RewardStruct
from mdp_uct.core.dtmc import DTMC

__all__ = [
    # Exceptions
    'UCTError', 'UnsupportedInitialStateError', 'ExplorationError', 'DistributionError',

    # Models
    'State', 'ModelGenerator', 'Choice', 'ExplicitMDP',

    # Rewards
    'RewardItem', 'RewardStruct',

    # Markov chains
    'DTMC',
]
