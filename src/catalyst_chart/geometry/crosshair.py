"""Pointer to sample/event resolution.

Every call is an independent nearest-neighbour query against the scene it is
given; nothing is remembered between pointer moves.
"""

from __future__ import annotations

import numpy as np

from catalyst_chart.geometry.smoothing import y_on_path
from catalyst_chart.types import (CrosshairKind, CrosshairMode,
                                  CrosshairResult, Scene)


class CrosshairResolver:
    """Resolves pointer positions against a scene.

    The past region includes the split line itself. In the past region the
    nearest sample always wins; in the future region the marker nearest the
    pointer in both axes wins, among markers within ``snap_threshold_px``
    horizontally.

    :param snap_threshold_px: Max horizontal distance for snapping to a marker.
    """

    def __init__(self, snap_threshold_px: float = 20.0) -> None:
        self.snap_threshold_px = snap_threshold_px

    def resolve(
        self,
        pointer_x: float,
        pointer_y: float,
        scene: Scene,
        mode: CrosshairMode = CrosshairMode.SNAP,
    ) -> CrosshairResult:
        """Resolve a pointer position.

        :param pointer_x: Pointer X in scene pixels.
        :param pointer_y: Pointer Y in scene pixels.
        :param scene: Scene the pointer is over.
        :param mode: Whether past-region hits snap to the sample or track the pointer.
        :returns: The hit sample or event, or a ``none`` result.
        """
        if not scene.viewport.contains(pointer_x, pointer_y):
            return CrosshairResult.none()
        if pointer_x <= scene.split_x:
            return self._resolve_past(pointer_x, scene, mode)
        return self._resolve_future(pointer_x, pointer_y, scene)

    def _resolve_past(
        self,
        pointer_x: float,
        scene: Scene,
        mode: CrosshairMode,
    ) -> CrosshairResult:
        points = scene.past_points
        if not points:
            return CrosshairResult.none()

        xs = np.fromiter((point.x for point in points), dtype=np.float64, count=len(points))
        right = int(np.searchsorted(xs, pointer_x, side="left"))
        if right >= len(points):
            nearest = len(points) - 1
        elif right == 0:
            nearest = 0
        else:
            left = right - 1
            # Equidistant pointers resolve to the earlier sample
            if pointer_x - xs[left] <= xs[right] - pointer_x:
                nearest = left
            else:
                nearest = right

        point = points[nearest]
        x, y = point.x, point.y
        if mode is CrosshairMode.TRACK:
            curve_y = y_on_path(scene.past_path, pointer_x)
            x = pointer_x
            y = point.y if curve_y is None else curve_y
        return CrosshairResult(
            kind=CrosshairKind.SAMPLE,
            x=x,
            y=y,
            sample=point.sample,
            sample_index=point.index,
        )

    def _resolve_future(
        self, pointer_x: float, pointer_y: float, scene: Scene
    ) -> CrosshairResult:
        hover_time = scene.future_axis.time_at(pointer_x)
        # Stacked slots share an x, so candidates are ranked in both axes
        candidates = [
            marker
            for marker in scene.event_markers
            if abs(marker.x - pointer_x) <= self.snap_threshold_px
        ]
        if not candidates:
            return CrosshairResult.none(hover_time)

        nearest = min(
            candidates,
            key=lambda marker: (
                (marker.x - pointer_x) ** 2 + (marker.y - pointer_y) ** 2,
                str(marker.event.id),
            ),
        )
        return CrosshairResult(
            kind=CrosshairKind.EVENT,
            x=nearest.x,
            y=nearest.y,
            event=nearest.event,
            marker=nearest,
            hover_time=hover_time,
        )


__all__ = ["CrosshairResolver"]
