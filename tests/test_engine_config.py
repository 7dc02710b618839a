"""
Tests for the calibration registry
Run with: pytest tests/test_engine_config.py -v
"""

import dataclasses

import pytest

from edge_engine.core.engine_config import ENGINE_VERSION, BaseWeights, EngineConfig


class TestDefaults:
    """Documented baseline values"""

    def test_blender_constants(self):
        cfg = EngineConfig.default()
        assert cfg.damping_factor == 0.85
        assert cfg.factor_blend_weight == 0.75
        assert cfg.sim_blend_weight == pytest.approx(0.25)
        assert (cfg.prob_floor, cfg.prob_ceiling) == (0.05, 0.95)

    def test_elo_constants(self):
        cfg = EngineConfig.default()
        assert cfg.elo_base_rating == 1500
        assert cfg.elo_k_factor == 20
        assert cfg.elo_home_advantage == 100

    def test_recommendation_thresholds_are_separate(self):
        cfg = EngineConfig.default()
        assert cfg.strong_bet_edge == 10
        assert cfg.lean_edge == 5
        assert cfg.value_bet_min_edge == 3

    def test_base_weights_leave_half_for_base_rate(self):
        assert BaseWeights().total == pytest.approx(0.50)

    def test_version_stamp(self):
        assert EngineConfig.default().version == ENGINE_VERSION

    def test_frozen(self):
        cfg = EngineConfig.default()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.damping_factor = 0.5


class TestHelpers:
    """Convenience accessors"""

    @pytest.mark.parametrize("raw,expected", [(1.2, 0.95), (-0.1, 0.05), (0.6, 0.6)])
    def test_clamp(self, raw, expected):
        assert EngineConfig.default().clamp_probability(raw) == expected

    def test_neutral_site_zeroes_home_bonuses(self):
        cfg = EngineConfig.default().neutral_site()
        assert cfg.home_court_points == 0.0
        assert cfg.sim_home_bonus_pts == 0.0
        assert cfg.damping_factor == 0.85

    def test_replace_override(self):
        cfg = dataclasses.replace(EngineConfig.default(), damping_factor=0.7)
        assert cfg.damping_factor == 0.7
        assert "damping=0.7" in repr(cfg)


class TestFromEnv:
    """Environment overrides"""

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("EDGE_DAMPING_FACTOR", "0.8")
        monkeypatch.setenv("EDGE_SIM_ITERATIONS", "250")
        monkeypatch.setenv("EDGE_SIM_SEED", "7")
        monkeypatch.setenv("VALUE_BET_MIN_EDGE", "4.5")
        cfg = EngineConfig.from_env()
        assert cfg.damping_factor == 0.8
        assert cfg.sim_iterations == 250
        assert cfg.sim_seed == 7
        assert cfg.value_bet_min_edge == 4.5

    def test_unset_keeps_defaults(self, monkeypatch):
        for name in (
            "EDGE_DAMPING_FACTOR", "EDGE_FACTOR_BLEND_WEIGHT", "EDGE_SIM_ITERATIONS",
            "EDGE_SIM_SEED", "ELO_K_FACTOR", "ELO_HOME_ADVANTAGE", "VALUE_BET_MIN_EDGE",
        ):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setattr("edge_engine.core.engine_config.load_dotenv", lambda: False)
        cfg = EngineConfig.from_env()
        assert cfg.elo_k_factor == 20
        assert cfg.sim_seed is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
