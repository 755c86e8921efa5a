"""
Spatial clustering of matched blood pixels into bounding-box findings.

Matched pixels are binned into a coarse grid. Cells with too few matches are
ignored, the remaining cells are grouped into 4-connected components with a
breadth-first flood fill, and every component large enough to be more than
noise becomes one Finding labeled with its dominant profile.
"""

import logging
from collections import deque
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from services.interfaces import ColorProfile, Finding, MatchedPixel

logger = logging.getLogger(__name__)


class ClusterEngine:
    """Groups spatially adjacent matched pixels into findings."""

    def __init__(
        self,
        profiles: Sequence[ColorProfile],
        cell_size: int = 12,
        cell_threshold: int = 3,
        min_total: int = 8
    ):
        """
        Initialize cluster engine.

        Args:
            profiles: Ordered blood profiles; order breaks ties for the dominant profile
            cell_size: Grid cell size in pixels
            cell_threshold: Minimum matches for a cell to be active
            min_total: Minimum matches for a component to become a finding
        """
        self.profiles = tuple(profiles)
        self.cell_size = cell_size
        self.cell_threshold = cell_threshold
        self.min_total = min_total
        self._profile_index = {profile.label: idx for idx, profile in enumerate(self.profiles)}
        self.logger = logging.getLogger(__name__)

    def cluster(self, pixels: Iterable[MatchedPixel], width: int, height: int) -> Tuple[Finding, ...]:
        """
        Cluster matched pixels.

        Args:
            pixels: Matched pixels; each profile must belong to this engine's table
            width: Image width
            height: Image height

        Returns:
            Findings in row-major order of each component's first cell
        """
        pixels = list(pixels)
        try:
            profile_indices = [self._profile_index[p.profile.label] for p in pixels]
        except KeyError as e:
            raise ValueError(f'Matched pixel has unknown profile {e}') from e

        return self.cluster_arrays(
            np.array([p.x for p in pixels], dtype=np.intp),
            np.array([p.y for p in pixels], dtype=np.intp),
            np.array(profile_indices, dtype=np.intp),
            width,
            height
        )

    def cluster_arrays(
        self,
        xs: np.ndarray,
        ys: np.ndarray,
        profile_indices: np.ndarray,
        width: int,
        height: int
    ) -> Tuple[Finding, ...]:
        """
        Cluster matched pixels given as parallel coordinate/profile arrays.

        Raises:
            ValueError: If a coordinate lies outside the image
        """
        if width <= 0 or height <= 0 or len(xs) == 0:
            return ()

        xs = np.asarray(xs, dtype=np.intp)
        ys = np.asarray(ys, dtype=np.intp)
        profile_indices = np.asarray(profile_indices, dtype=np.intp)
        if xs.min() < 0 or ys.min() < 0 or xs.max() >= width or ys.max() >= height:
            raise ValueError(f'Matched pixel outside image bounds {width}x{height}')

        cell = self.cell_size
        grid_w = -(-width // cell)
        grid_h = -(-height // cell)
        n_cells = grid_w * grid_h

        cell_idx = (ys // cell) * grid_w + (xs // cell)
        tallies = np.zeros((n_cells, len(self.profiles)), dtype=np.int64)
        np.add.at(tallies, (cell_idx, profile_indices), 1)
        counts = tallies.sum(axis=1)
        active = counts >= self.cell_threshold

        visited = np.zeros(n_cells, dtype=bool)
        findings: List[Finding] = []
        discarded = 0

        for start in np.flatnonzero(active):
            start = int(start)
            if visited[start]:
                continue

            visited[start] = True
            worklist = deque([start])
            min_gx = max_gx = start % grid_w
            min_gy = max_gy = start // grid_w
            profile_totals = np.zeros(len(self.profiles), dtype=np.int64)

            while worklist:
                ci = worklist.popleft()
                cx, cy = ci % grid_w, ci // grid_w
                min_gx, max_gx = min(min_gx, cx), max(max_gx, cx)
                min_gy, max_gy = min(min_gy, cy), max(max_gy, cy)
                profile_totals += tallies[ci]

                for nx, ny in ((cx - 1, cy), (cx + 1, cy), (cx, cy - 1), (cx, cy + 1)):
                    if nx < 0 or ny < 0 or nx >= grid_w or ny >= grid_h:
                        continue
                    ni = ny * grid_w + nx
                    if active[ni] and not visited[ni]:
                        visited[ni] = True
                        worklist.append(ni)

            total = int(profile_totals.sum())
            if total < self.min_total:
                discarded += 1
                continue

            # argmax returns the first maximum, i.e. the earliest-declared profile
            dominant = self.profiles[int(np.argmax(profile_totals))]
            x = min_gx * cell
            y = min_gy * cell
            findings.append(Finding(
                x=x,
                y=y,
                width=min((max_gx + 1) * cell, width) - x,
                height=min((max_gy + 1) * cell, height) - y,
                profile=dominant,
                pixel_count=total
            ))

        self.logger.debug(
            f'Clustering: {int(np.count_nonzero(active))} active cells, '
            f'{len(findings)} findings, {discarded} components discarded as noise'
        )
        return tuple(findings)
