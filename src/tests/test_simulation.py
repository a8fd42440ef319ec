"""
===============================================================================
SATSIM - Simulation Layer Test Suite
===============================================================================
Configuration loading (YAML/JSON), the propagation runner and the
command-line entry point.
===============================================================================
"""

import sys
import os
import json

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pandas as pd
import pytest
import yaml
from numpy.testing import assert_allclose

from satsim.core.exceptions import ConfigurationError, InvalidArgumentError, PropagationError
from satsim.dynamics.integrators import IntegratorConfig
from satsim.dynamics.orbital_mechanics import ELEMENT_NAMES
from satsim.main import main, build_parser
from satsim.simulation.config_loader import (
    load_satellite_configs, load_satellite_config, load_satellites,
)
from satsim.simulation.runner import (
    MAX_CONSECUTIVE_REJECTIONS, snapshot, propagate_adaptive, propagate_fixed, propagate_all,
)
from satsim.simulation.satellite import Satellite, ATTITUDE_NAMES


CONFIG_DIR = os.path.join(os.path.dirname(__file__), '..', '..', 'config')


@pytest.fixture
def sat_config():
    return {
        "Name": "Runner-1",
        "Semimajor Axis": 7200.0,
        "Eccentricity": 0.01,
        "Inclination": 55.0,
        "RAAN": 10.0,
        "Argument of Periapsis": 20.0,
        "True Anomaly": 0.0,
        "Mass": 200.0,
    }


@pytest.fixture
def yaml_file(tmp_path, sat_config):
    path = tmp_path / "sat.yaml"
    path.write_text(yaml.safe_dump(sat_config))
    return path


# =============================================================================
# Test: Configuration loading
# =============================================================================

class TestConfigLoader:

    def test_yaml_single(self, yaml_file, sat_config):
        assert load_satellite_config(yaml_file) == sat_config

    def test_json_single(self, tmp_path, sat_config):
        path = tmp_path / "sat.json"
        path.write_text(json.dumps(sat_config))
        assert load_satellite_config(path) == sat_config

    def test_list_file(self, tmp_path, sat_config):
        second = dict(sat_config, Name="Runner-2", **{"True Anomaly": 90.0})
        path = tmp_path / "pair.yaml"
        path.write_text(yaml.safe_dump([sat_config, second]))

        configs = load_satellite_configs(path)
        assert [c["Name"] for c in configs] == ["Runner-1", "Runner-2"]
        with pytest.raises(ConfigurationError):
            load_satellite_config(path)

    def test_load_satellites(self, tmp_path, sat_config):
        path = tmp_path / "pair.yaml"
        path.write_text(yaml.safe_dump([sat_config, dict(sat_config, Name="Runner-2")]))
        sats = load_satellites(path, integrator_config=IntegratorConfig(max_attempts=3))
        assert all(isinstance(s, Satellite) for s in sats)
        assert sats[1].get_name() == "Runner-2"
        assert sats[0].integrator_config.max_attempts == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_satellite_configs(tmp_path / "nothing.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("Name: [unclosed\n  - a: b")
        with pytest.raises(ConfigurationError):
            load_satellite_configs(path)

    @pytest.mark.parametrize("content", ["42", "- 1\n- 2\n", "[]", ""])
    def test_not_a_mapping(self, tmp_path, content):
        path = tmp_path / "odd.yaml"
        path.write_text(content)
        with pytest.raises(ConfigurationError):
            load_satellite_configs(path)

    def test_invalid_satellite_in_file(self, tmp_path, sat_config):
        sat_config["Inclination"] = 0.0
        path = tmp_path / "equatorial.yaml"
        path.write_text(yaml.safe_dump(sat_config))
        with pytest.raises(ConfigurationError):
            load_satellites(path)

    @pytest.mark.parametrize("filename", ["leo_circular.yaml", "molniya.json",
                                          "constellation.yaml"])
    def test_shipped_configs(self, filename):
        sats = load_satellites(os.path.join(CONFIG_DIR, filename))
        assert len(sats) >= 1
        for sat in sats:
            assert sat.get_radius() > 6378e3


# =============================================================================
# Test: Runner
# =============================================================================

class TestRunner:

    def test_snapshot_columns(self, sat_config):
        sat = Satellite(sat_config)
        row = snapshot(sat)
        for key in ("time", "name", "x", "y", "z", "vx", "vy", "vz",
                    "radius", "speed", "energy", "rotational_energy") + ATTITUDE_NAMES:
            assert key in row
        assert not set(ELEMENT_NAMES) & set(row)
        assert set(ELEMENT_NAMES) <= set(snapshot(sat, track_elements=True))

    def test_rotational_energy_column(self, sat_config):
        sat_config.update({"Inertia": [4.0, 5.0, 6.0], "Initial omega_x": 0.02})
        sat = Satellite(sat_config)
        history = propagate_adaptive(sat, 300.0, 1e-9, 1.0, perturbation=False)
        rotational = history["rotational_energy"].to_numpy()
        assert rotational[0] == snapshot(Satellite(sat_config))["rotational_energy"]
        assert np.all(rotational > 0.0)
        assert_allclose(rotational, rotational[0], rtol=1e-6)

    def test_adaptive_ends_on_duration(self, sat_config):
        sat = Satellite(sat_config)
        history = propagate_adaptive(sat, 600.0, 1e-7, 1.0)

        assert isinstance(history, pd.DataFrame)
        assert len(history) > 2
        assert history["time"].iloc[0] == 0.0
        assert_allclose(history["time"].iloc[-1], 600.0, atol=1e-9)
        assert np.all(np.diff(history["time"].to_numpy()) > 0.0)
        assert_allclose(history["x"].iloc[-1], sat.get_eci_position()[0])

    def test_adaptive_energy_without_j2(self, sat_config):
        sat = Satellite(sat_config)
        history = propagate_adaptive(sat, 1200.0, 1e-9, 1.0, perturbation=False)
        energy = history["energy"].to_numpy()
        assert_allclose(energy, energy[0], rtol=1e-9)

    def test_track_elements(self, sat_config):
        sat = Satellite(sat_config)
        history = propagate_adaptive(sat, 300.0, 1e-8, 1.0, perturbation=False,
                                     track_elements=True)
        assert_allclose(history["Semimajor Axis"], 7200e3, rtol=1e-9)
        assert_allclose(history["Eccentricity"], 0.01, atol=1e-9)
        assert history["True Anomaly"].iloc[-1] > history["True Anomaly"].iloc[0]

    def test_elements_untouched_without_tracking(self, sat_config):
        sat = Satellite(sat_config)
        before = sat.get_orbital_elements()
        propagate_adaptive(sat, 120.0, 1e-7, 1.0)
        assert sat.get_orbital_elements() == before

    @pytest.mark.parametrize("duration,tolerance,step", [
        (0.0, 1e-7, 1.0), (-10.0, 1e-7, 1.0), (60.0, 0.0, 1.0), (60.0, 1e-7, 0.0),
    ])
    def test_adaptive_invalid_arguments(self, sat_config, duration, tolerance, step):
        with pytest.raises(InvalidArgumentError):
            propagate_adaptive(Satellite(sat_config), duration, tolerance, step)

    def test_repeated_rejection_raises(self, sat_config):
        cfg = IntegratorConfig(max_attempts=1, min_factor=0.9)
        sat = Satellite(sat_config, integrator_config=cfg)
        with pytest.raises(PropagationError, match=str(MAX_CONSECUTIVE_REJECTIONS + 1)):
            propagate_adaptive(sat, 6000.0, 1e-20, 3000.0)
        assert sat.get_instantaneous_time() == 0.0

    def test_propagation_error_is_runtime_error(self):
        assert issubclass(PropagationError, RuntimeError)

    def test_fixed_rows_and_end_time(self, sat_config):
        sat = Satellite(sat_config)
        history = propagate_fixed(sat, 95.0, 10.0)
        assert len(history) == 11
        assert_allclose(history["time"].iloc[-1], 95.0, rtol=1e-14)
        assert_allclose(history["time"].iloc[-2], 90.0, rtol=1e-14)

    def test_fixed_matches_adaptive(self, sat_config):
        fixed = propagate_fixed(Satellite(sat_config), 300.0, 2.0)
        adaptive = propagate_adaptive(Satellite(sat_config), 300.0, 1e-9, 1.0)
        for key in ("x", "y", "z"):
            assert_allclose(fixed[key].iloc[-1], adaptive[key].iloc[-1], atol=1e-2)

    def test_fixed_invalid_arguments(self, sat_config):
        with pytest.raises(InvalidArgumentError):
            propagate_fixed(Satellite(sat_config), 60.0, 0.0)
        with pytest.raises(InvalidArgumentError):
            propagate_fixed(Satellite(sat_config), 0.0, 1.0)

    def test_propagate_all(self, sat_config):
        sats = [Satellite(sat_config), Satellite(dict(sat_config, Name="Runner-2"))]
        history = propagate_all(sats, 120.0, 1e-7, 1.0, atmospheric_drag=True)
        assert set(history["name"]) == {"Runner-1", "Runner-2"}
        assert history.index.is_monotonic_increasing
        for name, group in history.groupby("name"):
            assert_allclose(group["time"].iloc[-1], 120.0, atol=1e-9)


# =============================================================================
# Test: Command line
# =============================================================================

class TestMain:

    def test_parser_defaults(self):
        args = build_parser().parse_args(["sat.yaml"])
        assert args.configs == ["sat.yaml"]
        assert args.duration == 5400.0
        assert args.tolerance == 1e-7
        assert args.initial_step == 1.0
        assert args.perturbation is True
        assert args.drag is False
        assert args.output_dir is None

    def test_parser_switches(self):
        args = build_parser().parse_args(["a.yaml", "b.json", "--no-j2", "--drag",
                                          "--duration", "60"])
        assert args.configs == ["a.yaml", "b.json"]
        assert args.perturbation is False
        assert args.drag is True
        assert args.duration == 60.0

    def test_writes_history(self, yaml_file, tmp_path):
        out = tmp_path / "output"
        code = main([str(yaml_file), "--duration", "60", "--output-dir", str(out)])
        assert code == 0

        history = pd.read_csv(out / "Runner-1.csv")
        assert_allclose(history["time"].iloc[-1], 60.0, atol=1e-9)
        assert list(history["name"].unique()) == ["Runner-1"]

    def test_bad_config_returns_error(self, tmp_path, sat_config):
        sat_config["Mass"] = -1.0
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump(sat_config))
        assert main([str(path), "--duration", "10"]) == 1

    def test_missing_config_returns_error(self, tmp_path):
        assert main([str(tmp_path / "absent.yaml"), "--duration", "10"]) == 1
