import unittest

import gymnasium as gym
import numpy as np

import puyo_sim.env  # noqa: F401
from puyo_sim.env.puyo_env import ACTIONS, PuyoEnv
from puyo_sim.env.wrappers import ResampleInvalidActionWrapper
from puyo_sim.game import Action, PuyoColor, SequenceProvider

HARD_DROP = ACTIONS.index(Action.HARD_DROP)
QUICK_TURN = ACTIONS.index(Action.QUICK_TURN)
LEFT = ACTIONS.index(Action.LEFT)


class TestPuyoEnv(unittest.TestCase):
    def test_given_registered_id_when_made_then_puyo_env(self):
        env = gym.make("PuyoSim-v0")
        try:
            self.assertIsInstance(env.unwrapped, PuyoEnv)
            self.assertEqual(env.action_space.n, 6)
        finally:
            env.close()

    def test_given_seed_when_reset_then_observation_matches_space(self):
        env = PuyoEnv()
        obs, info = env.reset(seed=0)
        self.assertTrue(env.observation_space.contains(obs))
        self.assertEqual(obs["board"].shape, (14, 6))
        self.assertEqual(int(obs["board"].sum()), 0)
        np.testing.assert_array_equal(obs["current"], [int(PuyoColor.RED), int(PuyoColor.RED)])
        np.testing.assert_array_equal(obs["next"], [int(PuyoColor.PURPLE), int(PuyoColor.RED)])
        np.testing.assert_array_equal(obs["position"], [2, 2])
        self.assertEqual(obs["rotation"], 0)
        self.assertEqual(info["score"], 0)

    def test_given_fresh_game_when_masking_then_only_feasible_actions(self):
        env = PuyoEnv()
        _, info = env.reset(seed=0)
        mask = info["action_mask"]
        self.assertEqual(mask.shape, (6,))
        self.assertTrue(mask[LEFT])
        self.assertTrue(mask[HARD_DROP])
        self.assertFalse(mask[QUICK_TURN])
        np.testing.assert_array_equal(env.get_action_mask(), mask)

    def test_given_hard_drop_when_stepped_then_board_settled_and_next_pair_current(self):
        env = PuyoEnv()
        obs, _ = env.reset(seed=0)
        obs, reward, terminated, truncated, info = env.step(HARD_DROP)
        self.assertFalse(terminated)
        self.assertFalse(truncated)
        self.assertEqual(reward, 0.0)
        self.assertEqual(int(np.count_nonzero(obs["board"])), 2)
        np.testing.assert_array_equal(obs["current"], [int(PuyoColor.PURPLE), int(PuyoColor.RED)])
        self.assertEqual(info["chain"], 0)
        self.assertEqual(info["state"], "PLAYING")

    def test_given_invalid_action_when_stepped_then_penalised_and_state_kept(self):
        env = PuyoEnv(invalid_action_penalty=-0.5)
        obs, _ = env.reset(seed=0)
        obs2, reward, _, _, info = env.step(QUICK_TURN)
        self.assertEqual(reward, -0.5)
        self.assertIn("invalid", info["reward_components"])
        np.testing.assert_array_equal(obs["position"], obs2["position"])

    def test_given_stacking_sequence_when_dropping_then_terminates_with_penalty(self):
        provider = SequenceProvider.from_text("rgby" * 64)
        env = PuyoEnv(provider=provider, terminal_penalty=-2.0)
        env.reset(seed=0)
        terminated = False
        steps = 0
        reward = 0.0
        while not terminated and steps < 20:
            _, reward, terminated, _, info = env.step(HARD_DROP)
            steps += 1
        self.assertTrue(terminated)
        self.assertEqual(steps, 6)
        self.assertEqual(reward, -2.0)
        self.assertFalse(info["action_mask"].any())

    def test_given_step_limit_when_reached_then_truncated(self):
        env = PuyoEnv(max_episode_steps=2)
        env.reset(seed=0)
        _, _, _, truncated, _ = env.step(LEFT)
        self.assertFalse(truncated)
        _, _, _, truncated, _ = env.step(LEFT)
        self.assertTrue(truncated)

    def test_given_rgb_mode_when_rendered_then_image_array(self):
        env = PuyoEnv(render_mode="rgb_array")
        env.reset(seed=0)
        img = env.render()
        self.assertEqual(img.shape, (14 * 12, 6 * 12, 3))
        self.assertEqual(img.dtype, np.uint8)
        self.assertIsNone(PuyoEnv().render())

    def test_given_resample_wrapper_when_invalid_action_then_valid_action_taken(self):
        env = ResampleInvalidActionWrapper(PuyoEnv())
        env.reset(seed=0)
        _, _, _, _, info = env.step(QUICK_TURN)
        self.assertNotIn("invalid", info["reward_components"])
        self.assertEqual(env.get_action_mask().shape, (6,))


if __name__ == "__main__":
    unittest.main()
