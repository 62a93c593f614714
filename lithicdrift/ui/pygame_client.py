"""Pygame 2D visualization for the Lithicdrift simulation.

Renders the terrain, the accumulating assemblage map, quarries, and
foragers in a window.  The simulation steps at a configurable tick
rate while the display refreshes at the Pygame frame rate; the window
stays open on the final state once the run halts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

import numpy as np
import pygame

from lithicdrift.analysis.assemblage import Layer

if TYPE_CHECKING:
    from lithicdrift.simulation.engine import SimulationEngine

# Colour palette
_BG = (30, 20, 10)
_WATER = (25, 45, 80)
_QUARRY = (230, 60, 60)
_TEXT = (200, 200, 200)

# Land colour range by elevation (lowland -> highland)
_LAND_LO = np.array([60, 80, 40], dtype=np.float64)
_LAND_HI = np.array([150, 140, 110], dtype=np.float64)

# Assemblage overlay colour (amber glow)
_ASSEMBLAGE_COLOUR = np.array([255, 190, 40], dtype=np.float64)

# Forager colour range by toolkit fill (empty -> full)
_FORAGER_EMPTY = np.array([120, 120, 120], dtype=np.float64)
_FORAGER_FULL = np.array([255, 255, 255], dtype=np.float64)


class PygameRenderer:
    """Renders a SimulationEngine state into a Pygame window.

    Attributes:
        engine: The simulation engine to visualise.
        cell_size: Pixel size of each grid cell.
        layer: Assemblage statistic shown in the overlay.
        screen: The Pygame display surface.
    """

    # Speed presets: ticks per second at 30 fps
    _SPEED_STEPS: ClassVar[list[float]] = [
        0.5,
        1.0,
        3.0,
        5.0,
        10.0,
        15.0,
        30.0,
        60.0,
        120.0,
        300.0,
        600.0,
    ]

    def __init__(
        self,
        engine: SimulationEngine,
        cell_size: int = 10,
        ticks_per_second: float = 10.0,
    ) -> None:
        """Initialise the renderer.

        Args:
            engine: The simulation engine to render.
            cell_size: Pixel width/height per grid cell.
            ticks_per_second: Simulation ticks per real-time second.
        """
        self.engine = engine
        self.cell_size = cell_size
        self.ticks_per_second = ticks_per_second
        self.layer = Layer.COUNT
        self._speed_index = self._nearest_speed(ticks_per_second)
        self._tick_accumulator = 0.0

        w = engine.terrain.width * cell_size
        h = engine.terrain.height * cell_size
        self._panel_width = 220
        self._win_w = w + self._panel_width
        self._win_h = max(h, 360)

        pygame.init()
        self.screen = pygame.display.set_mode((self._win_w, self._win_h))
        pygame.display.set_caption("Lithicdrift")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True
        self.paused = False
        self._terrain_surface = self._render_terrain()
        engine.on_tick = self._on_tick

    def _nearest_speed(self, tps: float) -> int:
        """Return the index of the closest speed preset."""
        best = 0
        best_diff = abs(self._SPEED_STEPS[0] - tps)
        for i, s in enumerate(self._SPEED_STEPS):
            diff = abs(s - tps)
            if diff < best_diff:
                best, best_diff = i, diff
        return best

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, step sim, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            dt = self.clock.tick(fps) / 1000.0  # seconds elapsed
            self._handle_events()
            if not self.paused and not self.engine.finished:
                self._tick_accumulator += self.ticks_per_second * dt
                steps = int(self._tick_accumulator)
                self._tick_accumulator -= steps
                for _ in range(steps):
                    self.engine.step()
            self._draw()

        if not self.engine.finished:
            self.engine.stop()
        pygame.quit()

    def _on_tick(self, engine: SimulationEngine) -> None:
        """Redraw after every tick so no intermediate state is skipped."""
        self._draw()

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    self.paused = not self.paused
                elif event.key == pygame.K_d:
                    self.layer = (
                        Layer.DIVERSITY if self.layer is Layer.COUNT else Layer.COUNT
                    )
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    self._speed_index = min(
                        len(self._SPEED_STEPS) - 1,
                        self._speed_index + 1,
                    )
                    self.ticks_per_second = self._SPEED_STEPS[self._speed_index]
                elif event.key == pygame.K_MINUS:
                    self._speed_index = max(0, self._speed_index - 1)
                    self.ticks_per_second = self._SPEED_STEPS[self._speed_index]

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        self.screen.blit(self._terrain_surface, (0, 0))
        self._draw_assemblage_overlay()
        self._draw_quarries()
        self._draw_foragers()
        self._draw_info_panel()
        pygame.display.flip()

    def _render_terrain(self) -> pygame.Surface:
        """Draw land shaded by elevation and water, once."""
        cs = self.cell_size
        terrain = self.engine.terrain
        surface = pygame.Surface((terrain.width * cs, terrain.height * cs))
        elevation = terrain.elevation_raster()
        top = float(elevation.max())
        for y in range(terrain.height):
            for x in range(terrain.width):
                height = elevation[y, x]
                if height <= 0:
                    colour = _WATER
                else:
                    t = height / top if top > 0 else 0.0
                    colour = (_LAND_LO + t * (_LAND_HI - _LAND_LO)).astype(int).tolist()
                pygame.draw.rect(surface, colour, (x * cs, y * cs, cs, cs))
        return surface

    def _draw_assemblage_overlay(self) -> None:
        """Draw the assemblage layer as a translucent amber overlay."""
        cs = self.cell_size
        intensity = self.engine.snapshot().intensity(self.layer)
        if not intensity.any():
            return

        overlay = pygame.Surface(
            (self.engine.terrain.width * cs, self.engine.terrain.height * cs),
            pygame.SRCALPHA,
        )
        colour = _ASSEMBLAGE_COLOUR.astype(int).tolist()
        for row, col in zip(*np.nonzero(intensity), strict=True):
            x, y = int(col), int(row)
            alpha = int(40 + intensity[y, x] * 200)
            pygame.draw.rect(
                overlay,
                (*colour, alpha),
                (x * cs, y * cs, cs, cs),
            )

        self.screen.blit(overlay, (0, 0))

    def _draw_quarries(self) -> None:
        """Outline each quarry cell."""
        cs = self.cell_size
        for quarry in self.engine.quarries.quarries:
            pygame.draw.rect(
                self.screen,
                _QUARRY,
                (quarry.x * cs, quarry.y * cs, cs, cs),
                width=2,
            )

    def _draw_foragers(self) -> None:
        """Draw each forager as a dot shaded by how full its toolkit is."""
        cs = self.cell_size
        radius = max(2, cs // 3)
        for forager in self.engine.foragers:
            fill = len(forager.toolkit) / forager.max_carry if forager.max_carry else 0.0
            colour = _FORAGER_EMPTY + fill * (_FORAGER_FULL - _FORAGER_EMPTY)
            cx = forager.x * cs + cs // 2
            cy = forager.y * cs + cs // 2
            pygame.draw.circle(self.screen, colour.astype(int).tolist(), (cx, cy), radius)

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        panel_x = self.engine.terrain.width * self.cell_size + 10
        y = 10
        engine = self.engine

        if engine.finished:
            state = "FINISHED"
        elif self.paused:
            state = "PAUSED"
        else:
            state = "RUNNING"

        lines = [
            f"Tick: {engine.tick}/{engine.config.time_limit}",
            f"Speed: {self.ticks_per_second:.1f} t/s",
            state,
            "",
            "--- Landscape ---",
            f"Foragers: {len(engine.foragers)}",
            f"Quarries: {len(engine.quarries)}",
            f"Deposited: {engine.total_deposited}",
            f"Carried: {engine.total_held}",
            f"Layer: {self.layer.value}",
            "",
            "--- Controls ---",
            "SPACE: pause",
            "+/-: speed",
            "D: count/diversity",
            "ESC: quit",
        ]

        for line in lines:
            surf = self.font.render(line, True, _TEXT)
            self.screen.blit(surf, (panel_x, y))
            y += 18
