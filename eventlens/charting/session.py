"""Chart state kept by a dashboard between fetches."""
from typing import Iterable
from .fields import discover_fields
from .series import SeriesPoint, aggregate_series
from ..event_models import Event


class ChartSession:
    """
    Events, their numeric field catalogue and the plotted selection.

    The series is recomputed whenever the events or the selection change.
    Loading events while nothing is selected selects the first field.
    """

    def __init__(self):
        self.events: list[Event] = []
        self.fields: list[str] = []
        self.selected: list[str] = []
        self.series: list[SeriesPoint] = []

    def load(self, events: Iterable[Event]):
        self.events = list(events)
        self.fields = discover_fields(self.events)
        if not self.selected and self.fields:
            self.selected = [self.fields[0]]
        self._refresh()

    def select(self, fields: Iterable[str]):
        """Replace the selection, keeping order and dropping duplicates."""
        self.selected = list(dict.fromkeys(fields))
        self._refresh()

    def toggle(self, field: str):
        if field in self.selected:
            self.selected = [f for f in self.selected if f != field]
        else:
            self.selected = self.selected + [field]
        self._refresh()

    def records(self) -> list[dict]:
        return [point.to_record() for point in self.series]

    def _refresh(self):
        if self.events and self.selected:
            self.series = aggregate_series(self.events, self.selected)
        else:
            self.series = []
