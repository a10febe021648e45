"""Future event marker placement.

Markers are placed by time on the future axis and never merged: events that
land within the separation threshold of each other form a cluster, and each
member gets its own vertical slot so all stay independently tappable.
"""

from __future__ import annotations

from collections.abc import Sequence

from catalyst_chart.types import (ChartConfig, EventMarker, EventType,
                                  FutureAxis, FutureEvent, Viewport)

# Hex color and display label per category
EVENT_STYLES: dict[EventType, tuple[str, str]] = {
    EventType.PRODUCT: ("#f43f5e", "Product"),
    EventType.EARNINGS: ("#3b82f6", "Earnings"),
    EventType.INVESTOR_DAY: ("#64748b", "Investor Day"),
    EventType.REGULATORY: ("#f59e0b", "Regulatory"),
    EventType.GUIDANCE_UPDATE: ("#06b6d4", "Guidance Update"),
    EventType.CONFERENCE: ("#f97316", "Conference"),
    EventType.COMMERCE_EVENT: ("#14b8a6", "Commerce Event"),
    EventType.PARTNERSHIP: ("#8b5cf6", "Partnership"),
    EventType.MERGER: ("#a855f7", "M&A"),
    EventType.LEGAL: ("#ef4444", "Legal"),
    EventType.CORPORATE: ("#6b7280", "Corporate Action"),
    EventType.PRICING: ("#84cc16", "Pricing"),
    EventType.CAPITAL_MARKETS: ("#6366f1", "Capital Markets"),
    EventType.DEFENSE_CONTRACT: ("#78716c", "Defense Contract"),
    EventType.GUIDANCE: ("#0ea5e9", "Guidance"),
    EventType.LAUNCH: ("#ec4899", "Product Launch"),
    EventType.FDA: ("#22c55e", "FDA Approval"),
    EventType.SPLIT: ("#10b981", "Stock Split"),
    EventType.DIVIDEND: ("#059669", "Dividend"),
    EventType.OTHER: ("#6b7280", "Other"),
}


def event_color(event_type: EventType) -> str:
    return EVENT_STYLES[event_type][0]


def event_label(event_type: EventType) -> str:
    return EVENT_STYLES[event_type][1]


def slot_offset(slot: int) -> int:
    """Signed step count for a slot: 0, -1, +1, -2, +2, ..."""
    step = (slot + 1) // 2
    return -step if slot % 2 else step


class EventPlacer:
    """Places future events as markers.

    :param config: Chart tunables (radii, separation, slot spacing, baseline).
    """

    def __init__(self, config: ChartConfig | None = None) -> None:
        self.config = config or ChartConfig()

    def marker_radius(self, event: FutureEvent) -> float:
        """Radius scaled linearly by significance, mid-size when absent."""
        low = self.config.min_marker_radius
        high = self.config.max_marker_radius
        if event.significance is None:
            return (low + high) / 2.0
        return low + event.significance * (high - low)

    def slot_layout(self, size: int, height: float) -> tuple[float, float]:
        """Center and vertical step for a cluster of ``size`` markers.

        The step shrinks below ``slot_offset_px`` when the cluster would not
        otherwise fit in ``height``, and the center moves off the baseline
        just enough to keep the outermost slots inside the viewport, so no
        two slots of a cluster ever collapse onto a clamped edge.

        :param size: Number of markers in the cluster.
        :param height: Viewport height.
        :returns: ``(center y, step)``.
        """
        above = size // 2
        below = (size - 1) // 2
        step = self.config.slot_offset_px
        if above + below:
            step = min(step, height / (above + below))
        baseline = height * self.config.event_baseline
        center = min(max(baseline, above * step), height - below * step)
        return center, step

    def place(
        self,
        events: Sequence[FutureEvent],
        viewport: Viewport,
        axis: FutureAxis,
    ) -> tuple[EventMarker, ...]:
        """Place every event on the future timeline.

        Events are ordered by raw x, then by id. Consecutive events no further
        apart than ``min_event_separation_px`` share a cluster; within a
        cluster, slots are assigned in id order and alternate above and below
        the cluster center (see :meth:`slot_layout`).

        :param events: Events to place.
        :param viewport: Chart viewport.
        :param axis: Future-region time mapping.
        :returns: One marker per event.
        """
        if not events:
            return ()

        positioned = sorted(
            ((axis.x_for(event.timestamp), event) for event in events),
            key=lambda item: (item[0], str(item[1].id)),
        )

        clusters: list[list[tuple[float, FutureEvent]]] = [[positioned[0]]]
        for item in positioned[1:]:
            if item[0] - clusters[-1][-1][0] <= self.config.min_event_separation_px:
                clusters[-1].append(item)
            else:
                clusters.append([item])

        markers: list[EventMarker] = []
        for cluster in clusters:
            center, step = self.slot_layout(len(cluster), viewport.height)
            by_id = sorted(range(len(cluster)), key=lambda i: str(cluster[i][1].id))
            slots = {member: slot for slot, member in enumerate(by_id)}
            for member, (x, event) in enumerate(cluster):
                slot = slots[member]
                y = center + slot_offset(slot) * step
                markers.append(
                    EventMarker(
                        x=min(viewport.width, max(viewport.split_x, x)),
                        y=min(viewport.height, max(0.0, y)),
                        radius=self.marker_radius(event),
                        event=event,
                        slot=slot,
                        color=event_color(event.type),
                    )
                )
        return tuple(markers)


__all__ = [
    "EVENT_STYLES",
    "event_color",
    "event_label",
    "slot_offset",
    "EventPlacer",
]
