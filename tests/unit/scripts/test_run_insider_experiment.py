# tests/unit/scripts/test_run_insider_experiment.py
"""
Tests for the experiment script's flag handling.
"""

import importlib.util
from pathlib import Path

import pytest

from dayauction.config import load_config

ROOT = Path(__file__).resolve().parents[3]


@pytest.fixture(scope="module")
def script():
    path = ROOT / "scripts" / "run_insider_experiment.py"
    spec = importlib.util.spec_from_file_location("run_insider_experiment", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestOverrides:
    def test_no_flags_no_overrides(self, script):
        assert script.overrides_from_args(script.parse_args([])) == {}

    def test_flags_map_to_config_keys(self, script):
        args = script.parse_args(["--simulations", "5", "--days", "30", "--side", "sell", "--log", "DEBUG"])
        assert script.overrides_from_args(args) == {
            "experiment": {"n_simulations": 5, "n_days": 30, "log_level": "DEBUG"},
            "insider": {"side": "sell"},
        }

    def test_insider_flag_enables(self, script):
        overrides = script.overrides_from_args(script.parse_args(["--insider"]))
        assert overrides == {"insider": {"enabled": True}}

    def test_no_insider_disables_preset_insider(self, script):
        overrides = script.overrides_from_args(script.parse_args(["--no-insider"]))
        cfg = load_config(ROOT / "configs" / "insider_buyer.py", overrides)
        assert cfg.insider.enabled is False
