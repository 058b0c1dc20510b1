import math
import random

import pytest

from sph_lite_2d import (
    Particle,
    SimConstants,
    SimulationConfig,
    density_kernel,
    influence,
    update_density_and_pressure,
)


def test_kernel_is_one_at_origin_and_zero_at_radius():
    assert density_kernel(0.0, 30.0) == 1.0
    assert density_kernel(30.0, 30.0) == 0.0
    assert density_kernel(45.0, 30.0) == 0.0
    assert density_kernel(15.0, 30.0) == pytest.approx(0.25)
    assert influence(10.0, 30.0) == pytest.approx(2.0 / 3.0)


def test_density_includes_self_and_neighbour_within_radius():
    particles = [Particle(id=0, x=100.0, y=100.0), Particle(id=1, x=110.0, y=100.0)]
    config = SimulationConfig(rest_density=1.0, pressure_stiffness=2.0)

    update_density_and_pressure(particles, 30.0, config)

    expected = 1.0 + (1.0 - 10.0 / 30.0) ** 2
    for p in particles:
        assert p.density == pytest.approx(expected)
        assert p.pressure == pytest.approx(2.0 * (expected - 1.0))


def test_particles_at_exactly_the_radius_do_not_interact():
    particles = [Particle(id=0, x=100.0, y=100.0), Particle(id=1, x=130.0, y=100.0)]
    update_density_and_pressure(particles, 30.0, SimulationConfig(rest_density=1.0))

    assert particles[0].density == pytest.approx(1.0)
    assert particles[1].density == pytest.approx(1.0)
    assert particles[0].pressure == pytest.approx(0.0)


def test_pressure_is_negative_below_rest_density():
    particles = [Particle(id=0, x=50.0, y=50.0)]
    update_density_and_pressure(particles, 30.0, SimulationConfig(rest_density=3.0, pressure_stiffness=0.5))

    assert particles[0].density == pytest.approx(1.0)
    assert particles[0].pressure == pytest.approx(-1.0)


def test_density_floor_without_any_contribution():
    # A zero radius admits no pair, not even the particle itself
    particles = [Particle(id=0, x=50.0, y=50.0), Particle(id=1, x=50.0, y=50.0)]
    update_density_and_pressure(particles, 0.0, SimulationConfig(rest_density=1.0))

    for p in particles:
        assert p.density == SimConstants.density_floor
        assert p.pressure == pytest.approx(SimConstants.density_floor - 1.0)


def test_density_floor_for_non_finite_position():
    particles = [Particle(id=0, x=math.nan, y=50.0), Particle(id=1, x=60.0, y=50.0)]
    update_density_and_pressure(particles, 30.0, SimulationConfig())

    assert particles[0].density == SimConstants.density_floor
    assert particles[1].density == pytest.approx(1.0)


def test_density_never_below_floor_for_random_layouts():
    rng = random.Random(7)
    for _ in range(20):
        particles = [
            Particle(id=i, x=rng.uniform(0, 200), y=rng.uniform(0, 200))
            for i in range(rng.randint(1, 40))
        ]
        config = SimulationConfig(
            rest_density=rng.uniform(0.1, 3.0),
            pressure_stiffness=rng.uniform(0.1, 5.0),
        )
        update_density_and_pressure(particles, rng.uniform(0.0, 60.0), config)
        assert all(p.density >= SimConstants.density_floor for p in particles)


def test_coincident_particles_count_each_other_in_density():
    particles = [Particle(id=0, x=80.0, y=80.0), Particle(id=1, x=80.0, y=80.0)]
    update_density_and_pressure(particles, 30.0, SimulationConfig(rest_density=1.0))

    for p in particles:
        assert p.density == pytest.approx(2.0)
        assert p.pressure == pytest.approx(1.0)
