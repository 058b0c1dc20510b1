import math
import random

import pytest

from sph_lite_2d import (
    ParticleStore,
    PointerInput,
    SimConstants,
    SimulationConfig,
    initialize_particles,
)


def test_initialize_300_particles_with_contiguous_ids_inside_domain():
    config = SimulationConfig(particle_count=300)

    particles = initialize_particles(config, 800.0, 600.0, random.Random(1))

    assert len(particles) == 300
    assert [p.id for p in particles] == list(range(300))
    margin = SimConstants.wall_margin
    for p in particles:
        assert margin <= p.x <= 800.0 - margin
        assert margin <= p.y <= 600.0 - margin


def test_initial_state_comes_from_config():
    config = SimulationConfig(rest_density=1.7, ambient_temperature=42, particle_count=50)

    particles = initialize_particles(config, 1000.0, 1000.0, random.Random(2))

    for p in particles:
        assert p.density == 1.7
        assert p.pressure == 0.0
        assert p.temperature == 42
        assert -1.0 <= p.vx <= 1.0
        assert -1.0 <= p.vy <= 1.0


def test_grid_layout_starts_at_thirty_percent():
    config = SimulationConfig(particle_count=100)

    particles = initialize_particles(config, 2000.0, 1000.0, random.Random(3))

    # 10 columns, spacing = min(2000, 1000) / 10 * 0.8
    spacing = 80.0
    for p in particles[:10]:
        col = p.id % 10
        assert 600.0 + col * spacing <= p.x < 600.0 + col * spacing + 10.0
        assert 300.0 <= p.y < 310.0


def test_layout_is_reproducible_with_a_seed():
    config = SimulationConfig(particle_count=60)

    first = initialize_particles(config, 500.0, 400.0, random.Random(11))
    second = initialize_particles(config, 500.0, 400.0, random.Random(11))

    assert [p.position for p in first] == [p.position for p in second]
    assert [p.velocity for p in first] == [p.velocity for p in second]


def test_reinitialize_discards_previous_particles():
    store = ParticleStore(800.0, 600.0)
    first = store.reinitialize(SimulationConfig(particle_count=300), random.Random(4))
    first[0].x = -123.0

    second = store.reinitialize(SimulationConfig(particle_count=120), random.Random(4))

    assert second is not first
    assert len(store) == 120
    assert store[0].x != -123.0
    assert [p.id for p in store] == list(range(120))


def test_store_runs_passes_on_its_particles():
    store = ParticleStore(400.0, 400.0)
    store.reinitialize(SimulationConfig(particle_count=50), random.Random(5))

    store.update_density_and_pressure(SimConstants.smoothing_radius, SimulationConfig())
    assert all(p.density >= SimConstants.density_floor for p in store)

    assert store.apply_forces(SimulationConfig(), PointerInput(), 30.0, 50.0) == 0
    store.update_positions()
    assert all(math.isfinite(p.x) and math.isfinite(p.y) for p in store)


def test_degenerate_domain_is_rejected():
    with pytest.raises(ValueError):
        ParticleStore(0.0, 600.0)
    with pytest.raises(ValueError):
        initialize_particles(SimulationConfig(), 800.0, 10.0)
    store = ParticleStore(800.0, 600.0)
    with pytest.raises(ValueError):
        store.resize(-1.0, 600.0)
