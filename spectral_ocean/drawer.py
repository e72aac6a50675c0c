import logging

import numpy as np
import pygame

logger = logging.getLogger(__name__)


def heights_to_rgb(heights, amplitude):
    """Map heights in [-amplitude, amplitude] to a deep-to-light blue ramp."""
    t = np.clip(0.5 + 0.5 * heights / amplitude, 0.0, 1.0)[..., np.newaxis]
    deep = np.array([5.0, 25.0, 60.0])
    light = np.array([170.0, 220.0, 255.0])
    return (deep + (light - deep) * t).astype(np.uint8)


class OceanDrawer:

    def __init__(self, ocean_instance, domain_length_to_view, draw_points,
                 time_scale, image_resolution=160):
        """
        Initialize the drawer with the given ocean cascade and display parameters.

        Parameters:
            ocean_instance: An initialised OceanCascade.
            domain_length_to_view (float): World size (in meters) shown on screen.
            draw_points (int): Number of points on the profile line.
            time_scale (float): Simulation seconds per real second.
            image_resolution (int): Height samples per side of the top view.
        """
        self.ocean = ocean_instance
        self.domain_length_to_view = domain_length_to_view
        self.draw_points = draw_points
        self.time_scale = time_scale

        # Pygame display setup.
        self.screen_width = 800
        self.screen_height = 600
        self.map_height = 400
        pygame.init()
        self.screen = pygame.display.set_mode(
            (self.screen_width, self.screen_height))
        pygame.display.set_caption("Spectral Ocean Cascades")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("Arial", 20)

        # Profile along z = 0 and the grid of the top view.
        self.X_world = np.linspace(0, domain_length_to_view, draw_points)
        axis = np.linspace(0, domain_length_to_view, image_resolution)
        self.map_x, self.map_z = np.meshgrid(axis, axis, indexing="ij")

    def sim_to_screen(self, x, y):
        """
        Convert profile coordinates (x, height) to screen coordinates in
        the band below the top view. Heights span [-3, 3] meters.
        """
        sx = int(x / self.domain_length_to_view * self.screen_width)
        sim_y_min = -3
        sim_y_max = 3
        margin = 10
        top = self.map_height + margin
        drawable_height = self.screen_height - top - margin
        sy = top + int(
            (sim_y_max - y) / (sim_y_max - sim_y_min) * drawable_height)
        return sx, sy

    def draw_height_map(self):
        heights = self.ocean.get_real_water_height(self.map_x, self.map_z)
        rgb = heights_to_rgb(heights, amplitude=3.0)
        surface = pygame.surfarray.make_surface(rgb)
        surface = pygame.transform.smoothscale(
            surface, (self.screen_width, self.map_height))
        self.screen.blit(surface, (0, 0))

    def draw_profile(self):
        heights = self.ocean.get_real_water_height(
            self.X_world, np.zeros_like(self.X_world))
        _, sea_level = self.sim_to_screen(0, 0)
        pygame.draw.line(self.screen, (50, 50, 50), (0, sea_level),
                         (self.screen_width, sea_level))
        points = [
            self.sim_to_screen(x_val, h)
            for x_val, h in zip(self.X_world, heights)
        ]
        if len(points) >= 2:
            pygame.draw.lines(self.screen, (0, 255, 255), False, points, 2)

    def run(self):
        """
        Run the main drawing loop, dispatching one cascade frame per
        displayed frame.
        """
        t = 0.0
        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False

            dt = self.clock.tick(60) / 1000.0 * self.time_scale
            t += dt
            self.ocean.dispatch(t, dt)

            self.screen.fill((30, 30, 30))
            self.draw_height_map()
            self.draw_profile()

            time_text = self.font.render(f"t = {t:.2f} s", True, (255, 255, 255))
            self.screen.blit(time_text, (10, 10))
            pygame.display.flip()

        logger.info("viewer closed at t=%.2f s", t)
        pygame.quit()
