from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

import pygame
from pygame.math import Vector2

from ..config import SimulationConfig, apply_preset
from ..sim.core.school import School
from .render import BACKGROUND, draw_school

logger = logging.getLogger(__name__)


def run_viewer(config: SimulationConfig, max_frames: Optional[int] = None) -> int:
    """Open a resizable window and animate the school until it is closed.

    Returns the number of frames rendered.
    """
    pygame.init()
    try:
        screen = pygame.display.set_mode((int(config.width), int(config.height)), pygame.RESIZABLE)
        pygame.display.set_caption("Shoal")
        clock = pygame.time.Clock()
        school = School(config)
        pointer: Optional[Vector2] = None
        frame = 0
        running = True
        logger.info("viewer started with %d fish (%s preset)", len(school.fish), config.preset)

        while running and (max_frames is None or frame < max_frames):
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                    school.resize(event.w, event.h)
                elif event.type == pygame.MOUSEMOTION:
                    pointer = Vector2(event.pos)
                elif event.type == pygame.WINDOWLEAVE:
                    pointer = None

            screen.fill(BACKGROUND)
            school.tick(frame, pointer)
            draw_school(screen, school)
            pygame.display.flip()
            clock.tick(config.frame_rate)
            frame += 1
        return frame
    finally:
        pygame.quit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Interactive shoal viewer")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--preset", choices=["full", "schooling", "attraction"], default=None)
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--fps", type=float, default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    if args.preset:
        config = apply_preset(config, args.preset)
    if args.width is not None:
        config.width = args.width
    if args.height is not None:
        config.height = args.height
    if args.seed is not None:
        config.seed = args.seed
    if args.fps is not None:
        config.frame_rate = args.fps
    run_viewer(config)


if __name__ == "__main__":
    main()
