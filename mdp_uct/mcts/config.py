"""
Configuration for the UCT search.

This module defines the configuration parameters for the UCT algorithm,
including the horizon, the iteration budget and the exploration bias.
"""
from dataclasses import dataclass, fields
from typing import Optional, Literal, ClassVar
import math


@dataclass
class UCTConfig:
    """
    Configuration parameters for UCT search over an MDP.

    This class defines all tunable parameters for the UCT algorithm,
    with validation and sensible defaults.
    """
    # Search parameters
    iterations: int = 10000
    """Number of rollouts to run from the root"""

    depth: int = 5
    """Horizon: number of probabilistic steps simulated by each rollout"""

    time_limit: Optional[float] = None
    """Optional time limit in seconds, checked between rollouts (None = no limit)"""

    # Exploration parameters
    bias_policy: Literal["root_mean", "fixed"] = "root_mean"
    """How the exploration bias is chosen before each rollout
    ('root_mean' = the root's current estimate, 'fixed' = fixed_bias)"""

    fixed_bias: float = math.sqrt(2)
    """Exploration bias used when bias_policy is 'fixed'"""

    # Sampling parameters
    probability_tolerance: float = 1e-6
    """Allowed deviation from 1 of the outcome probabilities of a choice"""

    seed: Optional[int] = None
    """Seed for the random source used to sample outcomes (None = unseeded)"""

    # Reporting
    show_progress: bool = False
    """Whether to display a progress bar while searching"""

    record_history: bool = False
    """Whether to record the root estimate after every rollout"""

    # Constants
    BIAS_POLICIES: ClassVar[tuple] = ("root_mean", "fixed")

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.iterations <= 0:
            raise ValueError("iterations must be positive")

        if self.depth <= 0:
            raise ValueError("depth must be positive")

        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError("time_limit must be positive or None")

        if self.bias_policy not in self.BIAS_POLICIES:
            raise ValueError("bias_policy must be 'root_mean' or 'fixed'")

        if self.fixed_bias < 0:
            raise ValueError("fixed_bias must be non-negative")

        if self.probability_tolerance <= 0:
            raise ValueError("probability_tolerance must be positive")

    @classmethod
    def default(cls) -> 'UCTConfig':
        """
        Get the default configuration.

        Returns:
            Default UCTConfig object
        """
        return cls()

    @classmethod
    def fast(cls) -> 'UCTConfig':
        """
        Get a configuration optimized for speed (fewer rollouts).

        Returns:
            Fast UCTConfig object
        """
        return cls(iterations=100)

    @classmethod
    def deep(cls) -> 'UCTConfig':
        """
        Get a configuration for long horizons.

        Returns:
            Deep UCTConfig object
        """
        return cls(
            iterations=50000,
            depth=50,
            show_progress=True
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'UCTConfig':
        """
        Create a configuration from a dictionary.

        Args:
            config_dict: Dictionary of configuration parameters

        Returns:
            UCTConfig object
        """
        # Filter out any keys that aren't valid parameters
        names = {f.name for f in fields(cls)}
        valid_params = {k: v for k, v in config_dict.items() if k in names}
        return cls(**valid_params)

    def to_dict(self) -> dict:
        """
        Convert the configuration to a dictionary.

        Returns:
            Dictionary of configuration parameters
        """
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
        }

    def __str__(self) -> str:
        params = [f"{name}={value}" for name, value in self.to_dict().items()]
        return f"UCTConfig({', '.join(params)})"
