"""
mdp-uct - UCT search for bounded-horizon reward estimation in MDPs.

This package estimates the optimal expected reward that can be accumulated
within a fixed number of steps from the initial state of a Markov decision
process, using Monte Carlo Tree Search with the UCT selection rule. It also
extracts the best policy found and the Markov chain that policy induces.
"""

__version__ = "0.1.0"
__author__ = "mdp-uct developers"

# Make key components available at package level
from mdp_uct.core.model import ModelGenerator, ExplicitMDP
from mdp_uct.core.rewards import RewardItem, RewardStruct
from mdp_uct.core.dtmc import DTMC
from mdp_uct.mcts.config import UCTConfig
from mdp_uct.mcts.solver import UCTSolver

# Version info as a tuple for programmatic access
VERSION_INFO = tuple(map(int, __version__.split('.')))
