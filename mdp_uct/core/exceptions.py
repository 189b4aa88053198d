"""
Exceptions raised by the UCT search and its model collaborators.
"""


class UCTError(Exception):
    """Base class for errors raised by mdp_uct."""


class UnsupportedInitialStateError(UCTError):
    """The model does not have exactly one initial state."""


class ExplorationError(UCTError):
    """A state could not be explored, or a query was made before exploring one."""


class DistributionError(UCTError, ValueError):
    """Outcome probabilities of a choice do not form a probability distribution."""
