"""Application state for one interactive lookup session."""

from dataclasses import dataclass
from typing import Optional, Tuple

from headoffice.core.models import CompanyRecord, GeoPoint


@dataclass
class AppState:
    """
    Mutable UI state, created once at startup.

    Only the methods below change it: ``busy`` locks the inputs while a
    search runs, ``listening`` tracks voice capture, and the map fields
    remember the current view and marker.
    """
    busy: bool = False
    listening: bool = False
    results_visible: bool = False
    status: str = ""
    tone: str = "info"
    map_center: Optional[Tuple[float, float]] = None
    marker: Optional[GeoPoint] = None
    current_record: Optional[CompanyRecord] = None

    def begin_search(self) -> bool:
        """Lock the inputs. Returns False if a search is already running."""
        if self.busy:
            return False
        self.busy = True
        return True

    def end_search(self) -> None:
        self.busy = False

    def start_listening(self) -> None:
        self.listening = True

    def stop_listening(self) -> None:
        self.listening = False

    def set_status(self, message: str, tone: str = "info") -> None:
        self.status = message
        self.tone = tone

    def show_result(self, record: CompanyRecord) -> None:
        self.current_record = record
        self.results_visible = True

    def hide_result(self) -> None:
        self.results_visible = False

    def move_marker(self, geo: GeoPoint) -> None:
        self.map_center = (geo.lat, geo.lon)
        self.marker = geo

    def clear_marker(self) -> None:
        self.marker = None
