"""
Time axis synchronisation between the main chart and indicator sub-panels
"""

from core.interfaces.rendering import BaseTimeScale
from core.models.chart import LogicalRange


class TimeScaleLink:
    """
    Bidirectional pan sync between two time scales

    Setting the range on one axis fires its change handlers, which would set
    the other axis, which would fire back. The `_syncing` flag breaks that
    loop: while one side is being propagated, changes from the other side
    are ignored.

    Example:
        >>> link = TimeScaleLink(chart.time_scale(), panel.time_scale())
        >>> link.attach()
        >>> ...
        >>> link.detach()
    """

    def __init__(self, main: BaseTimeScale, panel: BaseTimeScale):
        self.main = main
        self.panel = panel
        self._syncing = False
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        self.main.subscribe_visible_range_change(self._on_main_change)
        self.panel.subscribe_visible_range_change(self._on_panel_change)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self.main.unsubscribe_visible_range_change(self._on_main_change)
        self.panel.unsubscribe_visible_range_change(self._on_panel_change)
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def _on_main_change(self, visible_range: LogicalRange | None) -> None:
        self._propagate(self.panel, visible_range)

    def _on_panel_change(self, visible_range: LogicalRange | None) -> None:
        self._propagate(self.main, visible_range)

    def _propagate(self, target: BaseTimeScale, visible_range: LogicalRange | None) -> None:
        if self._syncing or visible_range is None:
            return
        self._syncing = True
        try:
            target.set_visible_logical_range(visible_range)
        finally:
            self._syncing = False
