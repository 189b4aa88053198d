#!/usr/bin/env python
"""
Tests for explicit MDP models and reward structures.
"""
import unittest

from mdp_uct.core.exceptions import DistributionError, ExplorationError
from mdp_uct.core.examples import MODEL_GAMBLE, create_maintenance_mdp
from mdp_uct.core.model import ExplicitMDP
from mdp_uct.core.rewards import RewardItem, RewardStruct


class TestExplicitMDP(unittest.TestCase):
    """Test case for explicit models."""

    def setUp(self):
        self.model = ExplicitMDP.from_dict(MODEL_GAMBLE)

    def test_initial_state(self):
        self.assertTrue(self.model.has_single_initial_state())
        self.assertEqual(self.model.get_initial_state(), "start")
        self.assertEqual(self.model.get_initial_states(), ["start"])

    def test_several_initial_states(self):
        model = ExplicitMDP.from_dict({"initial_states": ["a", "b"], "choices": {"a": [], "b": []}})
        self.assertFalse(model.has_single_initial_state())

    def test_no_initial_state(self):
        model = ExplicitMDP()
        self.assertFalse(model.has_single_initial_state())
        with self.assertRaises(ExplorationError):
            model.get_initial_state()

    def test_explore(self):
        self.model.explore_state("start")
        self.assertEqual(self.model.get_explore_state(), "start")
        self.assertEqual(self.model.num_decisions(), 2)
        self.assertEqual(self.model.decision_label(0), "safe")
        self.assertEqual(self.model.decision_label(1), "risky")
        self.assertEqual(self.model.num_outcomes(1), 2)
        self.assertEqual(self.model.outcome_probability(1, 0), 0.5)
        self.assertEqual(self.model.outcome_target(1, 0), "won")
        self.assertEqual(self.model.outcome_target(1, 1), "lost")

    def test_deadlock_state(self):
        self.model.explore_state("lost")
        self.assertEqual(self.model.num_decisions(), 0)

    def test_query_before_explore(self):
        with self.assertRaises(ExplorationError):
            self.model.num_decisions()

    def test_unknown_state(self):
        with self.assertRaises(ExplorationError):
            self.model.explore_state("nowhere")
        with self.assertRaises(ExplorationError):
            self.model.get_choices("nowhere")

    def test_bad_choice_index(self):
        self.model.explore_state("won")
        with self.assertRaises(IndexError):
            self.model.decision_label(1)

    def test_targets_become_states(self):
        model = ExplicitMDP(initial_states=[0])
        index = model.add_choice(0, "go", [(0.5, 1), (0.5, 2)])
        self.assertEqual(index, 0)
        self.assertEqual(model.states, [0, 1, 2])
        self.assertEqual(model.num_states, 3)

    def test_probability_range(self):
        model = ExplicitMDP(initial_states=[0])
        with self.assertRaises(ValueError):
            model.add_choice(0, "go", [(1.5, 1)])

    def test_validate(self):
        self.model.validate()
        create_maintenance_mdp()[0].validate()

        model = ExplicitMDP(initial_states=[0])
        model.add_choice(0, "leak", [(0.5, 1), (0.3, 2)])
        with self.assertRaises(DistributionError):
            model.validate()

    def test_add_initial_state(self):
        model = ExplicitMDP()
        model.add_initial_state("x")
        self.assertTrue(model.has_single_initial_state())
        self.assertEqual(model.states, ["x"])

    def test_str(self):
        self.assertEqual(str(self.model), "ExplicitMDP(states=4, choices=3, initial=1)")


class TestRewardStruct(unittest.TestCase):
    """Test case for reward structures."""

    def test_no_match_is_zero(self):
        rewards = RewardStruct(items=[RewardItem.constant("a", 1.0)])
        self.assertEqual(rewards.get_reward("s", "b"), 0.0)
        self.assertEqual(RewardStruct().get_reward("s", "a"), 0.0)

    def test_matching_items_are_summed(self):
        rewards = RewardStruct(items=[
            RewardItem.constant("a", 1.0),
            RewardItem.constant("a", 2.5),
            RewardItem.constant("b", 100.0),
        ])
        self.assertEqual(rewards.get_reward("s", "a"), 3.5)
        self.assertEqual(rewards("s", "b"), 100.0)

    def test_guards(self):
        rewards = RewardStruct(items=[
            RewardItem.constant("a", 1.0, guard=lambda state, constants: state > 2),
            RewardItem.constant("a", 10.0, guard=lambda state, constants: state % 2 == 0),
        ])
        self.assertEqual(rewards.get_reward(1, "a"), 0.0)
        self.assertEqual(rewards.get_reward(3, "a"), 1.0)
        self.assertEqual(rewards.get_reward(4, "a"), 11.0)

    def test_expressions_use_state_and_constants(self):
        rewards = RewardStruct(name="scaled")
        rewards.add_item(RewardItem(
            action="work",
            reward=lambda state, constants: state * constants["rate"],
            guard=lambda state, constants: state <= constants["limit"],
        ))
        rewards.set_constant_values({"rate": 1.5, "limit": 4})
        self.assertEqual(rewards.num_items, 1)
        self.assertEqual(rewards.get_reward(2, "work"), 3.0)
        self.assertEqual(rewards.get_reward(5, "work"), 0.0)

    def test_unlabelled_actions(self):
        rewards = RewardStruct(items=[RewardItem.constant("", 2.0)])
        self.assertEqual(rewards.get_reward("s", ""), 2.0)
        self.assertEqual(rewards.get_reward("s", "tau"), 0.0)

    def test_expression_errors_propagate(self):
        rewards = RewardStruct(items=[
            RewardItem(action="a", reward=lambda state, constants: constants["missing"]),
        ])
        with self.assertRaises(KeyError):
            rewards.get_reward("s", "a")


if __name__ == "__main__":
    unittest.main()
