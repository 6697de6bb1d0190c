"""
Host-provided capabilities, abstracted for injection.

Voice capture and map display are supplied by the host environment. The
implementations here are the headless ones: a speech recognizer that is
never available, a map that draws nothing, and a map that prints an
OpenStreetMap link for the terminal.
"""

import math
from typing import Callable, List, Optional, Protocol, Tuple


MAP_ZOOM = 12


class SpeechRecognizer(Protocol):
    """Captures one spoken phrase."""

    available: bool

    def listen(self) -> str:
        """Block until a phrase is recognized and return its transcript."""
        ...

    def stop(self) -> None:
        ...


class MapWidget(Protocol):
    """Displays a single marker on a map."""

    def set_view(self, lat: float, lon: float, zoom: int) -> None:
        ...

    def place_marker(self, lat: float, lon: float, popup: str) -> None:
        ...

    def clear_marker(self) -> None:
        ...

    def show_unavailable(self, message: str) -> None:
        ...


class NullSpeechRecognizer:
    """Speech recognizer for environments without voice input."""

    available = False

    def listen(self) -> str:
        return ""

    def stop(self) -> None:
        pass


class NullMapWidget:
    """Map widget that records calls and draws nothing."""

    def __init__(self):
        self.calls: List[Tuple] = []

    def set_view(self, lat: float, lon: float, zoom: int) -> None:
        self.calls.append(("set_view", lat, lon, zoom))

    def place_marker(self, lat: float, lon: float, popup: str) -> None:
        self.calls.append(("place_marker", lat, lon, popup))

    def clear_marker(self) -> None:
        self.calls.append(("clear_marker",))

    def show_unavailable(self, message: str) -> None:
        self.calls.append(("show_unavailable", message))


def tile_for(lat: float, lon: float, zoom: int) -> Tuple[int, int]:
    """
    Slippy-map tile coordinates containing a point.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        zoom: Zoom level

    Returns:
        (x, y) tile indices
    """
    n = 2 ** zoom
    lat_rad = math.radians(lat)
    x = int((lon + 180.0) / 360.0 * n)
    y = int((1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n)
    return min(max(x, 0), n - 1), min(max(y, 0), n - 1)


class LinkMapWidget:
    """Map widget for terminals: prints a map link and the marker's tile URL."""

    def __init__(self, tile_url: str, echo: Callable[[str], None] = print):
        """
        Initialize the widget.

        Args:
            tile_url: Tile URL template with {s}, {z}, {x} and {y} placeholders
            echo: Output function
        """
        self.tile_url = tile_url
        self.echo = echo
        self.zoom = MAP_ZOOM
        self.marker: Optional[Tuple[float, float]] = None

    def set_view(self, lat: float, lon: float, zoom: int) -> None:
        self.zoom = zoom

    def place_marker(self, lat: float, lon: float, popup: str) -> None:
        self.marker = (lat, lon)
        self.echo(f"Map: https://www.openstreetmap.org/?mlat={lat:.5f}&mlon={lon:.5f}"
                  f"#map={self.zoom}/{lat:.5f}/{lon:.5f}")
        self.echo(f"Tile: {self.tile(lat, lon)}")

    def tile(self, lat: float, lon: float) -> str:
        x, y = tile_for(lat, lon, self.zoom)
        url = self.tile_url
        for name, value in (("s", "a"), ("z", self.zoom), ("x", x), ("y", y)):
            url = url.replace("{" + name + "}", str(value))
        return url

    def clear_marker(self) -> None:
        self.marker = None

    def show_unavailable(self, message: str) -> None:
        self.echo(message)
