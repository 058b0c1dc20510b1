"""
2D SPH-lite fluid core: the per-tick particle update behind the interactive
fluid sandbox in `sph_lite_viewer.py`.

Functionality covered:

- Simulation settings:
  - rest density
  - viscosity coefficient
  - pressure stiffness
  - gravity
  - ambient temperature (static per-particle label, used for colour only)
  - particle count
  - clamping of every setting to its slider range
- Interaction settings:
  - pointer attraction while the pointer is pressed
  - fixed interaction radius
- Particle spawning:
  - square grid (ceil(sqrt(n)) columns) starting at 30% of the domain
  - random jitter per particle
  - random initial velocity in [-1, 1] per axis
- Fluid dynamics:
  - density from a quadratic falloff kernel over all particles (O(n^2))
  - linear equation of state for pressure
  - pairwise pressure and viscosity forces
  - gravity and pointer forces
  - unit-step Euler velocity update with fixed damping
  - position integration and inelastic wall bounces
- Orchestration:
  - Running / Paused states, single-step, reset
  - reinitialization on any configuration change or domain resize

Structure notes:

- All passes are plain functions operating on a list of `Particle` records
  in-place; `FluidSimulation.step` runs them in order.
- Cross-particle reads inside a pass always come from a snapshot taken at
  pass entry, so results do not depend on particle order.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, replace
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# ---------------------------------------------
# Type aliases
# ---------------------------------------------

Vec2 = Tuple[float, float]


# ---------------------------------------------
# Central simulation constants
# (Edit this block to tweak behaviour)
# ---------------------------------------------


class SimConstants:
    # Kernel / interaction support
    smoothing_radius: float = 30.0
    interaction_radius: float = 50.0

    # Integration
    damping: float = 0.99
    density_floor: float = 0.1

    # Walls
    wall_margin: float = 5.0
    wall_restitution: float = -0.5

    # Pointer attraction
    pointer_strength: float = 0.5

    # Spawn layout
    spawn_offset: float = 0.3
    spawn_spacing: float = 0.8
    spawn_jitter: float = 10.0

    # Screen/window size in pixels (domain units == pixels)
    screen_width: int = 1200
    screen_height: int = 800
    target_fps: int = 60


# ---------------------------------------------
# Utility vector functions
# ---------------------------------------------

def v_sub(a: Vec2, b: Vec2) -> Vec2:
    return a[0] - b[0], a[1] - b[1]


def v_length_sq(a: Vec2) -> float:
    return a[0] * a[0] + a[1] * a[1]


def v_length(a: Vec2) -> float:
    return math.sqrt(v_length_sq(a))


def v_is_finite(a: Vec2) -> bool:
    return math.isfinite(a[0]) and math.isfinite(a[1])


# ---------------------------------------------
# Kernel functions
# ---------------------------------------------

def influence(dst: float, radius: float) -> float:
    """Linear falloff 1 - d/r, zero outside [0, radius)."""
    if 0.0 <= dst < radius:
        return 1.0 - dst / radius
    return 0.0


def density_kernel(dst: float, radius: float) -> float:
    """Quadratic falloff (1 - d/r)^2, zero outside [0, radius)."""
    w = influence(dst, radius)
    return w * w


# ---------------------------------------------
# Configuration
# ---------------------------------------------

@dataclass(frozen=True)
class ParameterRange:
    """Slider range for one tunable setting."""

    name: str
    label: str
    minimum: float
    maximum: float
    step: float
    decimals: int
    unit: str = ""

    def clamp(self, value: float) -> float:
        return min(max(value, self.minimum), self.maximum)

    def fraction(self, value: float) -> float:
        """Position of value along the slider track, 0..1."""
        span = self.maximum - self.minimum
        return (self.clamp(value) - self.minimum) / span

    def format(self, value: float) -> str:
        return f"{value:.{self.decimals}f}{self.unit}"


PARAMETERS: Tuple[ParameterRange, ...] = (
    ParameterRange("rest_density", "Density", 0.1, 3.0, 0.1, 2),
    ParameterRange("viscosity", "Viscosity", 0.001, 0.1, 0.001, 3),
    ParameterRange("pressure_stiffness", "Pressure", 0.1, 5.0, 0.1, 2),
    ParameterRange("gravity", "Gravity", 0.0, 1.0, 0.01, 2),
    ParameterRange("ambient_temperature", "Temperature", 0, 100, 1, 0, "°C"),
    ParameterRange("particle_count", "Particles", 50, 500, 10, 0),
)

_PARAMETERS_BY_NAME: Dict[str, ParameterRange] = {p.name: p for p in PARAMETERS}


@dataclass(frozen=True)
class SimulationConfig:
    """
    User-tunable fluid parameters.

    The constructor stores values as given; `clamped()` is the boundary
    through which values coming from the UI or the command line pass before
    they reach the simulation.
    """

    rest_density: float = 1.0
    viscosity: float = 0.01
    pressure_stiffness: float = 1.0
    gravity: float = 0.1
    ambient_temperature: int = 20
    particle_count: int = 300

    def validate(self) -> None:
        for param in PARAMETERS:
            value = getattr(self, param.name)
            if not math.isfinite(value):
                raise ValueError(f"{param.name} must be finite, got {value!r}")

    def clamped(self) -> SimulationConfig:
        """Return a copy with every field inside its slider range."""
        self.validate()
        values = {}
        for param in PARAMETERS:
            value = getattr(self, param.name)
            new_value = param.clamp(value)
            if param.name == "particle_count":
                steps = round((new_value - param.minimum) / param.step)
                new_value = int(param.clamp(param.minimum + steps * param.step))
            elif param.name == "ambient_temperature":
                new_value = int(round(new_value))
            if new_value != value:
                logger.debug(f"Clamped {param.name} from {value} to {new_value}")
            values[param.name] = new_value
        return replace(self, **values)


def parameter_range(name: str) -> ParameterRange:
    return _PARAMETERS_BY_NAME[name]


def adjust_parameter(config: SimulationConfig, name: str, steps: int) -> SimulationConfig:
    """Move one setting by `steps` slider steps and return the clamped result."""
    param = _PARAMETERS_BY_NAME[name]
    value = getattr(config, name) + steps * param.step
    # Round to the slider resolution so repeated steps do not drift
    value = round(value, param.decimals)
    return replace(config, **{name: value}).clamped()


@dataclass(frozen=True)
class PointerInput:
    """Latest pointer position and whether attraction is engaged."""

    x: float = 0.0
    y: float = 0.0
    active: bool = False


# ---------------------------------------------
# Particle state
# ---------------------------------------------

@dataclass
class Particle:
    id: int
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    density: float = 1.0
    pressure: float = 0.0
    temperature: float = 20.0

    @property
    def position(self) -> Vec2:
        return self.x, self.y

    @property
    def velocity(self) -> Vec2:
        return self.vx, self.vy

    @property
    def speed(self) -> float:
        return v_length(self.velocity)


def _check_domain(domain_width: float, domain_height: float) -> None:
    min_size = 2.0 * SimConstants.wall_margin
    if not (domain_width > min_size and domain_height > min_size):
        raise ValueError(
            f"Domain {domain_width}x{domain_height} leaves no room inside "
            f"the {SimConstants.wall_margin} wall margin"
        )


def _clamp_to_walls(value: float, size: float) -> float:
    margin = SimConstants.wall_margin
    return min(max(value, margin), size - margin)


def initialize_particles(
    config: SimulationConfig,
    domain_width: float,
    domain_height: float,
    rng: Optional[random.Random] = None,
) -> List[Particle]:
    """
    Lay out `config.particle_count` particles on a jittered square grid.

    The grid starts at 30% of the domain on each axis; rows or columns that
    the layout pushes past a wall are clamped onto the wall margin.
    """
    _check_domain(domain_width, domain_height)
    if rng is None:
        rng = random.Random()

    count = config.particle_count
    cols = max(1, int(math.ceil(math.sqrt(count))))
    spacing = min(domain_width / cols, domain_height / cols) * SimConstants.spawn_spacing
    jitter = SimConstants.spawn_jitter

    particles: List[Particle] = []
    for i in range(count):
        col = i % cols
        row = i // cols
        x = domain_width * SimConstants.spawn_offset + col * spacing + rng.random() * jitter
        y = domain_height * SimConstants.spawn_offset + row * spacing + rng.random() * jitter
        particles.append(
            Particle(
                id=i,
                x=_clamp_to_walls(x, domain_width),
                y=_clamp_to_walls(y, domain_height),
                vx=(rng.random() - 0.5) * 2.0,
                vy=(rng.random() - 0.5) * 2.0,
                density=config.rest_density,
                pressure=0.0,
                temperature=config.ambient_temperature,
            )
        )
    return particles


class ParticleStore:
    """Owns the particle collection of one run and the domain it lives in."""

    def __init__(self, domain_width: float, domain_height: float) -> None:
        _check_domain(domain_width, domain_height)
        self.domain_width: float = domain_width
        self.domain_height: float = domain_height
        self.particles: List[Particle] = []

    def __len__(self) -> int:
        return len(self.particles)

    def __iter__(self) -> Iterator[Particle]:
        return iter(self.particles)

    def __getitem__(self, index: int) -> Particle:
        return self.particles[index]

    def reinitialize(
        self, config: SimulationConfig, rng: Optional[random.Random] = None
    ) -> List[Particle]:
        """Discard the current collection and spawn a fresh one."""
        self.particles = initialize_particles(
            config, self.domain_width, self.domain_height, rng
        )
        return self.particles

    def resize(self, domain_width: float, domain_height: float) -> None:
        _check_domain(domain_width, domain_height)
        self.domain_width = domain_width
        self.domain_height = domain_height

    # Pass-scoped mutation

    def update_density_and_pressure(
        self, smoothing_radius: float, config: SimulationConfig
    ) -> None:
        update_density_and_pressure(self.particles, smoothing_radius, config)

    def apply_forces(
        self,
        config: SimulationConfig,
        pointer: PointerInput,
        smoothing_radius: float,
        interaction_radius: float,
    ) -> int:
        return apply_forces(
            self.particles, config, pointer, smoothing_radius, interaction_radius
        )

    def update_positions(self) -> int:
        return update_positions(self.particles, self.domain_width, self.domain_height)


# -------------------------
# Density and pressure
# -------------------------

def update_density_and_pressure(
    particles: Sequence[Particle],
    smoothing_radius: float,
    config: SimulationConfig,
) -> None:
    """Kernel-weighted density (self included) and linear-EOS pressure."""
    positions = [p.position for p in particles]

    # Stage all densities before writing so pressure reads a complete pass
    densities: List[float] = []
    for pos in positions:
        density = 0.0
        for other in positions:
            density += density_kernel(v_length(v_sub(pos, other)), smoothing_radius)
        densities.append(max(density, SimConstants.density_floor))

    for particle, density in zip(particles, densities):
        particle.density = density
        particle.pressure = config.pressure_stiffness * (density - config.rest_density)


# -------------------------
# Forces
# -------------------------

def pointer_force(
    pos: Vec2, pointer: PointerInput, interaction_radius: float
) -> Vec2:
    """Radial pull toward an active pointer, fading to zero at the radius."""
    if not pointer.active:
        return 0.0, 0.0
    offset = v_sub((pointer.x, pointer.y), pos)
    dst = v_length(offset)
    if not 0.0 < dst < interaction_radius:
        return 0.0, 0.0
    strength = SimConstants.pointer_strength * (interaction_radius - dst) / interaction_radius
    return offset[0] / dst * strength, offset[1] / dst * strength


def apply_forces(
    particles: Sequence[Particle],
    config: SimulationConfig,
    pointer: PointerInput,
    smoothing_radius: float,
    interaction_radius: float,
) -> int:
    """
    Accumulate pressure, viscosity, gravity and pointer forces into velocity.

    Forces are applied as a direct velocity increment followed by damping.
    Every particle reads its neighbours' state as it stood at pass entry.
    Returns the number of particles whose update was discarded because it
    was not finite.
    """
    snapshot = [(p.x, p.y, p.vx, p.vy, p.density, p.pressure) for p in particles]
    damping = SimConstants.damping

    new_velocities: List[Optional[Vec2]] = []
    for i, (x, y, vx, vy, _, pressure) in enumerate(snapshot):
        fx = 0.0
        fy = 0.0

        for j, (nx, ny, nvx, nvy, n_density, n_pressure) in enumerate(snapshot):
            if j == i:
                continue
            dx = x - nx
            dy = y - ny
            dst = math.sqrt(dx * dx + dy * dy)
            # Coincident pairs have no direction and contribute nothing
            if not 0.0 < dst < smoothing_radius:
                continue
            w = 1.0 - dst / smoothing_radius

            pressure_force = (pressure + n_pressure) / (2.0 * n_density)
            fx += dx / dst * pressure_force * w
            fy += dy / dst * pressure_force * w

            viscosity_force = config.viscosity * w
            fx += (nvx - vx) * viscosity_force
            fy += (nvy - vy) * viscosity_force

        fy += config.gravity

        px, py = pointer_force((x, y), pointer, interaction_radius)
        fx += px
        fy += py

        vel = ((vx + fx) * damping, (vy + fy) * damping)
        new_velocities.append(vel if v_is_finite(vel) else None)

    discarded = 0
    for particle, vel in zip(particles, new_velocities):
        if vel is None:
            logger.warning(f"Discarded non-finite velocity update for particle {particle.id}")
            discarded += 1
            continue
        particle.vx, particle.vy = vel
    return discarded


# -------------------------
# Integration and walls
# -------------------------

def update_positions(
    particles: Sequence[Particle], domain_width: float, domain_height: float
) -> int:
    """
    Explicit unit-step position update with inelastic wall bounces.

    Returns the number of particles that touched a wall this pass.
    """
    margin = SimConstants.wall_margin
    restitution = SimConstants.wall_restitution
    collision_events = 0

    for particle in particles:
        x = particle.x + particle.vx
        y = particle.y + particle.vy
        if not v_is_finite((x, y)):
            logger.warning(f"Discarded non-finite position update for particle {particle.id}")
            continue
        vx, vy = particle.vx, particle.vy
        collided = False

        if x < margin:
            x = margin
            vx *= restitution
            collided = True
        elif x > domain_width - margin:
            x = domain_width - margin
            vx *= restitution
            collided = True

        if y < margin:
            y = margin
            vy *= restitution
            collided = True
        elif y > domain_height - margin:
            y = domain_height - margin
            vy *= restitution
            collided = True

        particle.x, particle.y = x, y
        particle.vx, particle.vy = vx, vy
        if collided:
            collision_events += 1

    return collision_events


def tick(
    particles: List[Particle],
    config: SimulationConfig,
    pointer: PointerInput,
    domain_width: float,
    domain_height: float,
    smoothing_radius: float = SimConstants.smoothing_radius,
    interaction_radius: float = SimConstants.interaction_radius,
) -> List[Particle]:
    """Run one full update on `particles` and return the same list."""
    update_density_and_pressure(particles, smoothing_radius, config)
    apply_forces(particles, config, pointer, smoothing_radius, interaction_radius)
    update_positions(particles, domain_width, domain_height)
    return particles


# ---------------------------------------------
# Tick orchestration
# ---------------------------------------------

class FluidSimulation:
    """
    Running/Paused state machine around one ParticleStore.

    Any configuration change or resize fully reinitializes the particles;
    neither changes whether the simulation is running. Pointer input is
    held in a single immutable record which each tick reads once at entry.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        domain_width: float = SimConstants.screen_width,
        domain_height: float = SimConstants.screen_height,
        rng: Optional[random.Random] = None,
        running: bool = True,
    ) -> None:
        self.config: SimulationConfig = (config or SimulationConfig()).clamped()
        self.store = ParticleStore(domain_width, domain_height)
        self.smoothing_radius: float = SimConstants.smoothing_radius
        self.interaction_radius: float = SimConstants.interaction_radius
        self.running: bool = running
        self.pointer = PointerInput()

        # Statistics (updated each simulation tick)
        self.collision_events: int = 0
        self.tick_count: int = 0

        self._rng = rng if rng is not None else random.Random()
        self.reset()

    @property
    def particles(self) -> List[Particle]:
        return self.store.particles

    @property
    def paused(self) -> bool:
        return not self.running

    # -----------------------------
    # Reinitialization
    # -----------------------------

    def reset(self) -> None:
        """Respawn all particles from the current configuration."""
        self.store.reinitialize(self.config, self._rng)
        self.collision_events = 0
        self.tick_count = 0
        logger.info(
            f"Initialized {len(self.store)} particles in "
            f"{self.store.domain_width:g}x{self.store.domain_height:g} domain"
        )

    def on_config_changed(self, config: SimulationConfig) -> None:
        self.config = config.clamped()
        logger.info(f"Configuration changed: {self.config}")
        self.reset()

    def adjust_parameter(self, name: str, steps: int) -> None:
        self.on_config_changed(adjust_parameter(self.config, name, steps))

    def resize(self, domain_width: float, domain_height: float) -> None:
        self.store.resize(domain_width, domain_height)
        logger.info(f"Domain resized to {domain_width:g}x{domain_height:g}")
        self.reset()

    # -----------------------------
    # Running / Paused
    # -----------------------------

    def pause(self) -> None:
        if self.running:
            logger.debug("Simulation paused")
        self.running = False

    def resume(self) -> None:
        if not self.running:
            logger.debug("Simulation resumed")
        self.running = True

    def toggle_pause(self) -> None:
        if self.running:
            self.pause()
        else:
            self.resume()

    # -----------------------------
    # Pointer input
    # -----------------------------

    def press_pointer(self, x: float, y: float) -> None:
        self.pointer = PointerInput(x, y, True)

    def move_pointer(self, x: float, y: float) -> None:
        self.pointer = PointerInput(x, y, self.pointer.active)

    def release_pointer(self) -> None:
        self.pointer = replace(self.pointer, active=False)

    # -----------------------------
    # Simulation step
    # -----------------------------

    def step(self) -> bool:
        """Advance one tick if running. Returns whether a tick happened."""
        if not self.running:
            return False
        self._advance()
        return True

    def step_once(self) -> None:
        """Advance exactly one tick regardless of the Running/Paused state."""
        self._advance()

    def _advance(self) -> None:
        pointer = self.pointer
        self.store.update_density_and_pressure(self.smoothing_radius, self.config)
        self.store.apply_forces(
            self.config, pointer, self.smoothing_radius, self.interaction_radius
        )
        self.collision_events = self.store.update_positions()
        self.tick_count += 1
