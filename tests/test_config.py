import math

import pytest

from sph_lite_2d import PARAMETERS, SimulationConfig, adjust_parameter, parameter_range


def test_defaults_are_inside_ranges():
    config = SimulationConfig()
    assert config.clamped() == config


def test_clamped_pins_every_field_to_its_range():
    config = SimulationConfig(
        rest_density=9.0,
        viscosity=0.0,
        pressure_stiffness=-1.0,
        gravity=2.0,
        ambient_temperature=150,
        particle_count=5,
    ).clamped()

    assert config.rest_density == 3.0
    assert config.viscosity == 0.001
    assert config.pressure_stiffness == 0.1
    assert config.gravity == 1.0
    assert config.ambient_temperature == 100
    assert config.particle_count == 50


def test_integer_fields_are_rounded_and_snapped():
    config = SimulationConfig(ambient_temperature=20.6, particle_count=304).clamped()

    assert config.ambient_temperature == 21
    assert isinstance(config.ambient_temperature, int)
    assert config.particle_count == 300
    assert SimulationConfig(particle_count=9999).clamped().particle_count == 500


def test_non_finite_values_are_rejected():
    with pytest.raises(ValueError):
        SimulationConfig(gravity=math.nan).clamped()
    with pytest.raises(ValueError):
        SimulationConfig(rest_density=math.inf).validate()


def test_adjust_parameter_moves_one_step():
    config = SimulationConfig()

    assert adjust_parameter(config, "rest_density", 1).rest_density == pytest.approx(1.1)
    assert adjust_parameter(config, "viscosity", -2).viscosity == pytest.approx(0.008)
    assert adjust_parameter(config, "particle_count", 3).particle_count == 330
    assert adjust_parameter(config, "ambient_temperature", -1).ambient_temperature == 19


def test_adjust_parameter_stays_in_range():
    config = SimulationConfig(gravity=0.0)

    assert adjust_parameter(config, "gravity", -5).gravity == 0.0
    assert adjust_parameter(config, "particle_count", 100).particle_count == 500


def test_adjust_unknown_parameter():
    with pytest.raises(KeyError):
        adjust_parameter(SimulationConfig(), "temperature", 1)


def test_parameter_table_matches_config_fields():
    names = [p.name for p in PARAMETERS]
    assert names == [
        "rest_density",
        "viscosity",
        "pressure_stiffness",
        "gravity",
        "ambient_temperature",
        "particle_count",
    ]
    gravity = parameter_range("gravity")
    assert gravity.fraction(0.5) == pytest.approx(0.5)
    assert gravity.format(0.1) == "0.10"
    assert parameter_range("ambient_temperature").format(20) == "20°C"
