"""
Real-Time Preview Window

Live view of the simulation: exhaust smoke, ambient particles and the four
emission bars, with the blend adjustable from the keyboard.

The window owns the clock: every frame it advances the simulation's
TimerService by the real frame delta.

Controls:
    LEFT/DOWN   - Decrease blend by 1%
    RIGHT/UP    - Increase blend by 1%
    0-9         - Jump to E0, E2 ... E18 (0 = E0, 9 = E18)
    E           - Jump to E20
    SPACE       - Pause/resume time
    H           - Show/hide help
    ESC/Q       - Quit

Requires: pygame (pip install pygame)
"""

import logging
from typing import Any, Optional, Tuple
from dataclasses import dataclass

from .metrics import MetricReport
from .profile import METRICS
from .recorder import METRIC_COLORS, PARTICLE_COLORS
from .visuals import ParticleCanvas

logger = logging.getLogger(__name__)

# Try to import pygame
try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False
    pygame = None


def check_pygame_available() -> bool:
    """Check if pygame is available for preview"""
    return PYGAME_AVAILABLE


@dataclass
class PreviewConfig:
    """Configuration for the preview window"""
    window_width: int = 800
    window_height: int = 600
    window_title: str = "E20 Blend Simulator"
    background_color: Tuple[int, int, int] = (18, 22, 28)
    fps: int = 60
    panel_width: int = 220
    show_help: bool = False


class PreviewCanvas(ParticleCanvas):
    """Canvas drawn onto a pygame surface"""

    def draw(self, surface: Any, now: float) -> None:
        for entity, state in self.states(now):
            if state.alpha <= 0 or state.size <= 0:
                continue
            radius = max(1, int(state.size / 2))
            color = PARTICLE_COLORS.get(entity.kind, (255, 255, 255))
            sprite = pygame.Surface((radius * 2, radius * 2), pygame.SRCALPHA)
            pygame.draw.circle(
                sprite, (*color, int(255 * state.alpha)), (radius, radius), radius
            )
            surface.blit(sprite, (int(state.x) - radius, int(state.y) - radius))


class PreviewWindow:
    """
    Interactive window around a SimulationSystem.

    Example:
        canvas = PreviewCanvas(800, 600)
        system = SimulationSystem(renderer=canvas, viewport_width=canvas.viewport_width)
        PreviewWindow(system, canvas).run()
    """

    def __init__(self, system, canvas: PreviewCanvas, config: Optional[PreviewConfig] = None):
        if not PYGAME_AVAILABLE:
            raise ImportError(
                "pygame is required for preview. Install with: pip install pygame"
            )

        self.system = system
        self.canvas = canvas
        self.config = config or PreviewConfig()
        self.paused = False

        pygame.init()
        pygame.display.set_caption(self.config.window_title)
        self.screen = pygame.display.set_mode(
            (self.config.window_width, self.config.window_height), pygame.RESIZABLE
        )
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 20)
        self.canvas.resize(self.config.window_width, self.config.window_height)

    def run(self) -> None:
        """Run the main loop until the window is closed"""
        self.system.start()
        running = True

        try:
            while running:
                dt_ms = self.clock.tick(self.config.fps)

                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN:
                        running = self._handle_key(event.key)
                    elif event.type == pygame.VIDEORESIZE:
                        self.screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                        self.canvas.resize(event.w, event.h)

                if not self.paused:
                    self.system.advance(dt_ms)

                self._render()
                pygame.display.flip()
        finally:
            self.system.stop()
            pygame.quit()

    def _handle_key(self, key: int) -> bool:
        """Handle keyboard input. Returns False to quit."""
        controller = self.system.controller

        if key in (pygame.K_ESCAPE, pygame.K_q):
            return False
        elif key in (pygame.K_LEFT, pygame.K_DOWN):
            controller.step(-1)
        elif key in (pygame.K_RIGHT, pygame.K_UP):
            controller.step(1)
        elif pygame.K_0 <= key <= pygame.K_9:
            controller.set_percentage((key - pygame.K_0) * 2)
        elif key == pygame.K_e:
            controller.set_percentage(20)
        elif key == pygame.K_SPACE:
            self.paused = not self.paused
        elif key == pygame.K_h:
            self.config.show_help = not self.config.show_help

        return True

    def _render(self) -> None:
        self.screen.fill(self.config.background_color)
        self.canvas.draw(self.screen, self.system.clock.now)
        self._render_panel(self.system.report())
        if self.config.show_help:
            self._render_help()

    def _render_panel(self, report: MetricReport) -> None:
        """Blend label plus one bar per emission index"""
        x = self.screen.get_width() - self.config.panel_width
        y = 16
        bar_width = self.config.panel_width - 32

        title = f"E{report.percentage}  ({report.tier.value} efficiency)"
        self.screen.blit(self.font.render(title, True, (230, 230, 230)), (x, y))
        y += 28

        for metric in METRICS:
            value = getattr(report.values, metric)
            label = f"{metric.upper():<4}{value:>4g}%  {report.format_reduction(metric)}"
            self.screen.blit(self.font.render(label, True, (200, 200, 200)), (x, y))
            y += 18
            pygame.draw.rect(self.screen, (50, 50, 50), (x, y, bar_width, 8))
            filled = int(bar_width * min(max(value, 0), 100) / 100)
            pygame.draw.rect(self.screen, METRIC_COLORS[metric], (x, y, filled, 8))
            y += 20

        particles = f"{len(self.canvas)} particles"
        self.screen.blit(self.font.render(particles, True, (140, 140, 140)), (x, y))

    def _render_help(self) -> None:
        lines = [
            "LEFT/RIGHT  blend -/+ 1%",
            "0-9         jump to E0..E18",
            "E           jump to E20",
            "SPACE       pause",
            "H           toggle help",
            "ESC/Q       quit",
        ]
        for i, line in enumerate(lines):
            self.screen.blit(self.font.render(line, True, (230, 230, 230)), (16, 16 + i * 18))
