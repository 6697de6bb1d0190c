"""
Rendering of a CompanyRecord for the terminal.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import click

from headoffice.core.models import CompanyRecord, FranchiseSignal, TerritorySignal
from headoffice.ui.capabilities import MAP_ZOOM, MapWidget, NullMapWidget
from headoffice.ui.state import AppState


MAP_UNAVAILABLE = "Map unavailable for this address."

TONE_COLOURS = {"yes": "green", "outside": "yellow", "no": "red"}
STATUS_COLOURS = {"warn": "yellow", "info": None}


@dataclass
class Badge:
    text: str
    tone: str = ""


@dataclass
class ResultView:
    """Everything shown for one record, as plain text."""
    name: str
    number_line: str
    address_line: str
    jurisdiction_line: str
    incorporation_line: str
    franchise_badge: Badge
    territory_badge: Badge
    signals: List[str] = field(default_factory=list)
    info: List[Tuple[str, str]] = field(default_factory=list)


def franchise_badge(franchise: Optional[FranchiseSignal]) -> Badge:
    value = franchise.value if franchise else "Unknown"
    tone = {"Yes": "yes", "No": "no"}.get(value, "")
    return Badge(f"Franchise: {value}", tone)


def territory_badge(territory: Optional[TerritorySignal]) -> Badge:
    status = territory.status if territory else "Unknown"
    tone = {"Inside": "yes", "Outside": "outside"}.get(status, "")
    return Badge(f"Territory: {status}", tone)


def build_view(record: CompanyRecord) -> ResultView:
    """
    Lay out a record for display.

    Args:
        record: Record to display

    Returns:
        ResultView with every line resolved
    """
    signals = [
        "Head office located." if record.address else "Head office address missing.",
        record.territory.reason if record.territory else None,
        record.franchise.reason if record.franchise else None,
        f"Status: {record.status}" if record.status else None,
    ]
    info = [
        ("Company type", record.company_type),
        ("Jurisdiction", record.jurisdiction),
        ("Company number", record.company_number),
        ("Incorporation date", record.incorporation_date),
        ("Raw source", record.source or "OpenCorporates"),
    ]

    return ResultView(
        name=record.name or "—",
        number_line=" • ".join(part for part in (record.company_number, record.status) if part),
        address_line=record.address or "Head office address unavailable.",
        jurisdiction_line=f"Jurisdiction: {record.jurisdiction}" if record.jurisdiction else "",
        incorporation_line=f"Incorporated: {record.incorporation_date}" if record.incorporation_date else "",
        franchise_badge=franchise_badge(record.franchise),
        territory_badge=territory_badge(record.territory),
        signals=[signal for signal in signals if signal],
        info=[(label, value) for label, value in info if value],
    )


class ResultRenderer:
    """
    Writes records and status messages to the terminal.

    Owns the AppState and the map widget; every UI change goes through it.
    """

    def __init__(self, state: Optional[AppState] = None,
                 map_widget: Optional[MapWidget] = None,
                 echo: Callable[[str], None] = click.echo,
                 color: bool = True):
        """
        Initialize the renderer.

        Args:
            state: Application state (a fresh one if omitted)
            map_widget: Map capability (NullMapWidget if omitted)
            echo: Output function
            color: Whether to style badges and warnings with ANSI colours
        """
        self.state = state if state is not None else AppState()
        self.map = map_widget if map_widget is not None else NullMapWidget()
        self.echo = echo
        self.color = color

    def _style(self, text: str, colour: Optional[str]) -> str:
        if not self.color or not colour:
            return text
        return click.style(text, fg=colour)

    def set_status(self, message: str, tone: str = "info") -> None:
        self.state.set_status(message, tone)
        self.echo(self._style(message, STATUS_COLOURS.get(tone)))

    def hide(self) -> None:
        self.state.hide_result()

    def render(self, record: CompanyRecord) -> ResultView:
        """
        Display a record and move the map marker.

        Args:
            record: Record to display

        Returns:
            The ResultView that was written
        """
        view = build_view(record)

        self.echo("")
        self.echo(click.style(view.name, bold=True) if self.color else view.name)
        for line in (view.number_line, view.address_line, view.jurisdiction_line, view.incorporation_line):
            if line:
                self.echo(line)

        badges = [view.franchise_badge, view.territory_badge]
        self.echo("  ".join(
            f"[{self._style(badge.text, TONE_COLOURS.get(badge.tone))}]" for badge in badges
        ))

        self.echo("Signals:")
        for signal in view.signals:
            self.echo(f"  - {signal}")

        self.echo("Details:")
        for label, value in view.info:
            self.echo(f"  {label}: {value}")

        self._render_map(record)
        self.state.show_result(record)
        return view

    def _render_map(self, record: CompanyRecord) -> None:
        if record.geo is None:
            self.map.clear_marker()
            self.state.clear_marker()
            self.map.show_unavailable(MAP_UNAVAILABLE)
            return

        geo = record.geo
        self.map.set_view(geo.lat, geo.lon, MAP_ZOOM)
        if self.state.marker is not None:
            self.map.clear_marker()
        self.map.place_marker(geo.lat, geo.lon, f"{record.name}\n{record.address}")
        self.state.move_marker(geo)
