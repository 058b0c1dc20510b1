"""
Interactive pygame front end for the SPH-lite fluid core in `sph_lite_2d.py`.

Usage:

    python sph_lite_viewer.py --particles 300 --gravity 0.1

Controls:

- Left mouse button: attract particles towards the pointer
- 1-6: select a fluid property, Up/Down: change it (restarts the simulation)
- Space: pause / resume
- Right arrow: single-step one tick while paused
- R: reset the simulation
- H: hide / show the controls panel
- G: toggle FPS / wall-collision graphs
- Esc or window close: quit

Colours represent density (red), speed (green) and temperature (blue).
Domain units are window pixels, with y growing downward so positive gravity
pulls particles to the bottom of the window.
"""

from __future__ import annotations

import argparse
import logging
import random
from typing import List, Optional, Tuple

import pygame

from sph_lite_2d import (
    PARAMETERS,
    FluidSimulation,
    Particle,
    SimConstants,
    SimulationConfig,
)

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

PANEL_WIDTH = 280
MIN_DOMAIN_SIZE = int(4 * SimConstants.wall_margin)
BACKGROUND: Color = (10, 10, 10)
TEXT_COLOR: Color = (255, 255, 255)
HINT_COLOR: Color = (204, 204, 204)

PARAMETER_KEYS = (pygame.K_1, pygame.K_2, pygame.K_3, pygame.K_4, pygame.K_5, pygame.K_6)


# ---------------------------------------------
# Particle appearance
# ---------------------------------------------

def _channel(value: float) -> int:
    return max(0, min(255, int(value)))


def normalized_density(particle: Particle) -> float:
    return min(particle.density / 2.0, 1.0)


def particle_color(particle: Particle) -> Color:
    """Red from density, green from speed, blue from temperature."""
    nd = normalized_density(particle)
    return (
        _channel(100 + nd * 155),
        _channel(50 + particle.speed * 50),
        _channel(200 + particle.temperature),
    )


def particle_radius(particle: Particle) -> float:
    return 3.0 + normalized_density(particle) * 2.0


# ---------------------------------------------
# Pygame app
# ---------------------------------------------

class FluidSimApp:
    """Pygame app wrapper around FluidSimulation."""

    def __init__(
        self,
        config: SimulationConfig,
        screen_size: Tuple[int, int] = (SimConstants.screen_width, SimConstants.screen_height),
        seed: Optional[int] = None,
        paused: bool = False,
    ) -> None:
        pygame.init()
        self.clock = pygame.time.Clock()

        # Window
        self.pixel_width, self.pixel_height = screen_size
        self.screen = pygame.display.set_mode(screen_size, pygame.RESIZABLE)
        pygame.display.set_caption("2D Fluid Simulation")
        self.font = pygame.font.SysFont("arial", 16)
        self.small_font = pygame.font.SysFont("arial", 12)

        # Simulation
        rng = random.Random(seed) if seed is not None else None
        self.sim = FluidSimulation(
            config,
            domain_width=self.pixel_width,
            domain_height=self.pixel_height,
            rng=rng,
            running=not paused,
        )

        self.running = True
        self.step_once = False
        self.show_controls = True
        self.selected_parameter = 0

        # Graph display state
        self.show_graphs = False
        self.fps_history: List[float] = []
        self.collision_history: List[float] = []
        self.max_history_points = 240  # about 4 seconds at 60 fps

    # ---------------
    # Input handling
    # ---------------

    def _handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.VIDEORESIZE:
                self._handle_resize(event.w, event.h)
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event.key)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.sim.press_pointer(*event.pos)
            elif event.type == pygame.MOUSEMOTION:
                self.sim.move_pointer(*event.pos)
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self.sim.release_pointer()
            elif event.type == pygame.WINDOWLEAVE:
                self.sim.release_pointer()

    def _handle_key(self, key: int) -> None:
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_SPACE:
            self.sim.toggle_pause()
        elif key == pygame.K_RIGHT:
            # Step one tick while paused
            self.step_once = True
        elif key == pygame.K_r:
            self.sim.reset()
        elif key == pygame.K_h:
            self.show_controls = not self.show_controls
        elif key == pygame.K_g:
            self.show_graphs = not self.show_graphs
        elif key in PARAMETER_KEYS:
            self.selected_parameter = PARAMETER_KEYS.index(key)
        elif key in (pygame.K_UP, pygame.K_DOWN):
            steps = 1 if key == pygame.K_UP else -1
            self.sim.adjust_parameter(PARAMETERS[self.selected_parameter].name, steps)

    def _handle_resize(self, width: int, height: int) -> None:
        self.pixel_width = width
        self.pixel_height = height
        self.screen = pygame.display.get_surface()
        # The domain needs room between the walls even for a collapsed window
        domain_width = max(width, MIN_DOMAIN_SIZE)
        domain_height = max(height, MIN_DOMAIN_SIZE)
        if (domain_width, domain_height) != (width, height):
            logger.warning(
                f"Window {width}x{height} too small, using {domain_width}x{domain_height} domain"
            )
        self.sim.resize(domain_width, domain_height)

    # ---------------
    # Rendering
    # ---------------

    def _draw(self) -> None:
        self.screen.fill(BACKGROUND)

        for particle in self.sim.particles:
            pygame.draw.circle(
                self.screen,
                particle_color(particle),
                (int(particle.x), int(particle.y)),
                particle_radius(particle),
            )

        # Interaction radius visualization
        pointer = self.sim.pointer
        if pointer.active:
            overlay = pygame.Surface((self.pixel_width, self.pixel_height), pygame.SRCALPHA)
            pygame.draw.circle(
                overlay,
                (255, 255, 255, 77),
                (int(pointer.x), int(pointer.y)),
                int(self.sim.interaction_radius),
                2,
            )
            self.screen.blit(overlay, (0, 0))

        if self.show_controls:
            self._draw_controls()

        if self.show_graphs:
            self._draw_graphs()

        pygame.display.flip()

    def _draw_controls(self) -> None:
        panel = pygame.Surface((PANEL_WIDTH, self.pixel_height), pygame.SRCALPHA)
        panel.fill((0, 0, 0, 204))

        x = 20
        y = 20
        panel.blit(self.font.render("Fluid Properties", True, TEXT_COLOR), (x, y))
        y += 36

        track_width = PANEL_WIDTH - 2 * x
        for index, param in enumerate(PARAMETERS):
            value = getattr(self.sim.config, param.name)
            marker = "> " if index == self.selected_parameter else ""
            label = f"{marker}{index + 1}. {param.label}: {param.format(value)}"
            panel.blit(self.font.render(label, True, TEXT_COLOR), (x, y))
            y += 22

            track = pygame.Rect(x, y, track_width, 6)
            pygame.draw.rect(panel, (90, 90, 90), track)
            filled = track.copy()
            filled.width = int(track_width * param.fraction(value))
            pygame.draw.rect(panel, (68, 68, 255), filled)
            y += 22

        status = "Running (Space to pause)" if self.sim.running else "Paused (Space to play)"
        status_color = (255, 68, 68) if self.sim.running else (68, 255, 68)
        y += 10
        panel.blit(self.font.render(status, True, status_color), (x, y))
        y += 36

        hints = [
            "Instructions:",
            "- Click and drag to attract particles",
            "- 1-6 select a property, Up/Down adjust",
            "- R reset, H hide controls, G graphs",
            "- Colors represent density and velocity",
        ]
        for line in hints:
            panel.blit(self.small_font.render(line, True, HINT_COLOR), (x, y))
            y += 18

        self.screen.blit(panel, (0, 0))

    def _draw_graphs(self) -> None:
        """Draw FPS and wall-collisions-per-second graphs at top-right."""
        margin = 10
        graph_width = 260
        graph_height = 80
        right = self.pixel_width - margin
        top = margin

        bg_color = (5, 5, 20)
        border_color = (180, 180, 180)
        grid_color = (60, 60, 90)
        text_color = (230, 230, 230)

        def draw_single_graph(
            data: List[float], rect: pygame.Rect, color: Color, y_label: str
        ) -> None:
            pygame.draw.rect(self.screen, bg_color, rect)
            pygame.draw.rect(self.screen, border_color, rect, 1)

            # Grid: 4 vertical + 3 horizontal lines
            step_x = rect.width // 4
            step_y = rect.height // 3
            for i in range(1, 4):
                x = rect.left + i * step_x
                pygame.draw.line(self.screen, grid_color, (x, rect.top), (x, rect.bottom))
            for i in range(1, 3):
                y = rect.top + i * step_y
                pygame.draw.line(self.screen, grid_color, (rect.left, y), (rect.right, y))

            max_val = 1.0
            n = len(data)
            if data:
                max_val = max(max(data), 1e-3)
            # Leave some headroom
            max_val *= 1.1

            for i in range(1, n):
                x0 = rect.left + int(rect.width * (i - 1) / max(n - 1, 1))
                x1 = rect.left + int(rect.width * i / max(n - 1, 1))
                y0 = rect.bottom - int(rect.height * (data[i - 1] / max_val))
                y1 = rect.bottom - int(rect.height * (data[i] / max_val))
                pygame.draw.line(self.screen, color, (x0, y0), (x1, y1), 2)

            for frac in (0.0, 0.5, 1.0):
                y = rect.bottom - int(rect.height * frac)
                surf = self.small_font.render(f"{max_val * frac:.0f}", True, text_color)
                self.screen.blit(surf, (rect.left - surf.get_width() - 4, y - surf.get_height() // 2))

            label_surf = self.small_font.render(y_label, True, text_color)
            self.screen.blit(label_surf, (rect.left - label_surf.get_width() - 4, rect.top - 2))

        fps_rect = pygame.Rect(right - graph_width, top, graph_width, graph_height)
        draw_single_graph(self.fps_history, fps_rect, (80, 220, 80), "FPS")

        col_rect = pygame.Rect(
            right - graph_width, top + graph_height + 24, graph_width, graph_height
        )
        draw_single_graph(self.collision_history, col_rect, (220, 180, 80), "coll/s")

    def _record_stats(self, frame_time: float) -> None:
        fps = self.clock.get_fps()
        if fps > 0:
            self.fps_history.append(fps)
        collisions_per_sec = 0.0
        if frame_time > 0:
            collisions_per_sec = self.sim.collision_events / frame_time
        self.collision_history.append(collisions_per_sec)

        # Trim history
        if len(self.fps_history) > self.max_history_points:
            self.fps_history = self.fps_history[-self.max_history_points :]
        if len(self.collision_history) > self.max_history_points:
            self.collision_history = self.collision_history[-self.max_history_points :]

    # ---------------
    # Main loop
    # ---------------

    def run(self) -> None:
        while self.running:
            frame_time = self.clock.tick(SimConstants.target_fps) / 1000.0
            self._handle_events()

            if self.step_once:
                self.sim.step_once()
                self.step_once = False
                self._record_stats(frame_time)
            elif self.sim.step():
                self._record_stats(frame_time)

            self._draw()

        pygame.quit()


def build_parser() -> argparse.ArgumentParser:
    defaults = SimulationConfig()
    parser = argparse.ArgumentParser(description="2D Fluid Simulation (SPH-lite, pygame)")
    parser.add_argument(
        "--particles",
        type=int,
        default=defaults.particle_count,
        help="Number of particles (50-500, step 10).",
    )
    parser.add_argument(
        "--density",
        type=float,
        default=defaults.rest_density,
        help="Rest density the pressure pushes towards (0.1-3.0).",
    )
    parser.add_argument(
        "--viscosity",
        type=float,
        default=defaults.viscosity,
        help="Velocity relaxation between neighbours (0.001-0.1).",
    )
    parser.add_argument(
        "--pressure",
        type=float,
        default=defaults.pressure_stiffness,
        help="Pressure stiffness (0.1-5.0).",
    )
    parser.add_argument(
        "--gravity",
        type=float,
        default=defaults.gravity,
        help="Downward acceleration per tick (0-1.0).",
    )
    parser.add_argument(
        "--temperature",
        type=int,
        default=defaults.ambient_temperature,
        help="Ambient temperature in degrees C (0-100), used for particle colour.",
    )
    parser.add_argument(
        "--screen-width",
        type=int,
        default=SimConstants.screen_width,
        help="Window width in pixels.",
    )
    parser.add_argument(
        "--screen-height",
        type=int,
        default=SimConstants.screen_height,
        help="Window height in pixels.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the initial particle layout.",
    )
    parser.add_argument(
        "--paused",
        action="store_true",
        help="Start paused (Space to play).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    return SimulationConfig(
        rest_density=args.density,
        viscosity=args.viscosity,
        pressure_stiffness=args.pressure,
        gravity=args.gravity,
        ambient_temperature=args.temperature,
        particle_count=args.particles,
    ).clamped()


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = config_from_args(args)
    logger.info(f"Starting with {config}")
    app = FluidSimApp(
        config,
        screen_size=(args.screen_width, args.screen_height),
        seed=args.seed,
        paused=args.paused,
    )
    app.run()


if __name__ == "__main__":
    main()
