"""
Small example MDPs with their reward structures.

These models are small enough to solve by hand and are used by the demo
script and the tests.
"""
from typing import Dict, Tuple

from mdp_uct.core.model import ExplicitMDP
from mdp_uct.core.rewards import RewardItem, RewardStruct

# Value of operating the machine, by wear level
MACHINE_OUTPUT = {0: 10.0, 1: 8.0, 2: 4.0, 3: 0.0}

# Probability that operating the machine increases its wear
WEAR_PROBABILITY = 0.4


def create_chain_mdp(length: int = 10, reward: float = 1.0) -> Tuple[ExplicitMDP, RewardStruct]:
    """
    Create a deterministic chain: one action, one outcome, fixed reward.

    State i moves to state i+1 with probability 1 by the action "step".
    The last state loops on itself, so rollouts never deadlock.

    Args:
        length: Number of states
        reward: Reward earned by every step

    Returns:
        Tuple of (model, reward structure)
    """
    model = ExplicitMDP(initial_states=[0])
    for i in range(length):
        model.add_choice(i, "step", [(1.0, min(i + 1, length - 1))])

    rewards = RewardStruct(name="steps")
    rewards.add_item(RewardItem.constant("step", reward))
    return model, rewards


def create_maintenance_mdp() -> Tuple[ExplicitMDP, RewardStruct]:
    """
    Create a machine maintenance MDP.

    The state is the wear level of a machine (0 = new, 3 = broken).
    Operating it earns a reward that decreases with wear and may wear it
    further; repairing it earns nothing and usually restores it to new.
    A broken machine can only be repaired.

    Returns:
        Tuple of (model, reward structure)
    """
    model = ExplicitMDP(initial_states=[0])
    for wear in range(3):
        model.add_choice(wear, "operate", [
            (1.0 - WEAR_PROBABILITY, wear),
            (WEAR_PROBABILITY, wear + 1),
        ])
    for wear in range(1, 4):
        model.add_choice(wear, "repair", [(0.9, 0), (0.1, wear)])

    rewards = RewardStruct(name="output")
    rewards.add_item(RewardItem(
        action="operate",
        reward=lambda state, constants: MACHINE_OUTPUT[state] * constants.get("price", 1.0),
    ))
    return model, rewards


def create_gamble_mdp() -> Tuple[ExplicitMDP, RewardStruct]:
    """
    Create a one-shot gamble between a safe and a risky action.

    From the start state, "safe" earns 3 and ends the game. "risky" earns
    nothing but wins with probability 0.5, after which "collect" earns 10.
    The optimal expected reward is 3 with a horizon of one step and 5
    with any longer horizon.

    Returns:
        Tuple of (model, reward structure)
    """
    model = ExplicitMDP.from_dict(MODEL_GAMBLE)

    rewards = RewardStruct(name="payout")
    rewards.add_item(RewardItem.constant("safe", 3.0))
    rewards.add_item(RewardItem.constant("collect", 10.0, guard=lambda state, constants: state == "won"))
    return model, rewards


MODEL_GAMBLE: Dict = {
    "initial": "start",
    "choices": {
        "start": [
            {"label": "safe", "outcomes": [[1.0, "done"]]},
            {"label": "risky", "outcomes": [[0.5, "won"], [0.5, "lost"]]},
        ],
        "won": [
            {"label": "collect", "outcomes": [[1.0, "done"]]},
        ],
        "lost": [],
        "done": [],
    },
}
