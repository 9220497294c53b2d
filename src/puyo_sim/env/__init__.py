"""Gymnasium environments for the puyo simulator."""

from __future__ import annotations

from gymnasium.envs.registration import register

# One pair per decision, six discrete actions
register(
    id="PuyoSim-v0",
    entry_point="puyo_sim.env.puyo_env:PuyoEnv",
)

__all__ = ["PuyoSim-v0"]
