"""Viewport requests for member and country selection.

Nothing here touches a map widget. A ``ViewportRequest`` is a list of commands
the viewer applies in order; ``PanTo`` carries the delay to wait after the
preceding fit so the widget has settled on the new scale before recentring.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from chapter_map.members import Coordinates, Member

Bounds = Tuple[Coordinates, Coordinates]

DEFAULT_CENTER: Coordinates = (0.0, 0.0)
DEFAULT_ZOOM = 2
MEMBER_ZOOM = 6
FIT_PADDING = (50, 50)
SETTLE_DELAY_MS = 100

CURRENT_LINE_COLOR = '#666'
CURRENT_LINE_DASH = '5,10'


@dataclass(frozen=True)
class Region:
    center: Coordinates
    bounds: Bounds


# (south, west), (north, east) per country, mainland only.
COUNTRY_REGIONS: Dict[str, Region] = {
    'Argentina': Region(center=(-38.4, -63.6), bounds=((-55.1, -73.6), (-21.8, -53.6))),
    'Bolivia': Region(center=(-16.3, -63.6), bounds=((-22.9, -69.7), (-9.7, -57.5))),
    'Brazil': Region(center=(-14.2, -51.9), bounds=((-33.8, -74.0), (5.3, -34.8))),
    'Chile': Region(center=(-35.7, -71.5), bounds=((-56.0, -75.7), (-17.5, -66.4))),
    'Colombia': Region(center=(4.6, -74.3), bounds=((-4.2, -79.0), (12.5, -66.9))),
    'Costa Rica': Region(center=(9.7, -83.8), bounds=((8.0, -85.9), (11.2, -82.6))),
    'Cuba': Region(center=(21.5, -77.8), bounds=((19.8, -85.0), (23.3, -74.1))),
    'Ecuador': Region(center=(-1.8, -78.2), bounds=((-5.0, -81.1), (1.5, -75.2))),
    'Mexico': Region(center=(23.6, -102.6), bounds=((14.5, -118.4), (32.7, -86.7))),
    'Paraguay': Region(center=(-23.4, -58.4), bounds=((-27.6, -62.6), (-19.3, -54.3))),
    'Peru': Region(center=(-9.2, -75.0), bounds=((-18.4, -81.3), (0.0, -68.7))),
    'Uruguay': Region(center=(-32.5, -55.8), bounds=((-35.0, -58.4), (-30.1, -53.1))),
    'Venezuela': Region(center=(6.4, -66.6), bounds=((0.6, -73.4), (12.2, -59.8))),
}


@dataclass(frozen=True)
class SetView:
    center: Coordinates
    zoom: int

    def to_dict(self) -> Dict:
        return {'type': 'setView', 'center': list(self.center), 'zoom': self.zoom}


@dataclass(frozen=True)
class FitBounds:
    bounds: Bounds
    padding: Tuple[int, int] = FIT_PADDING

    def to_dict(self) -> Dict:
        return {
            'type': 'fitBounds',
            'bounds': [list(corner) for corner in self.bounds],
            'padding': list(self.padding),
        }


@dataclass(frozen=True)
class PanTo:
    center: Coordinates
    delay_ms: int = SETTLE_DELAY_MS

    def to_dict(self) -> Dict:
        return {'type': 'panTo', 'center': list(self.center), 'delayMs': self.delay_ms}


ViewportCommand = Union[SetView, FitBounds, PanTo]


@dataclass(frozen=True)
class ViewportRequest:
    center: Coordinates
    commands: Tuple[ViewportCommand, ...]
    zoom: Optional[int] = None
    bounds: Optional[Bounds] = None

    @property
    def is_default(self) -> bool:
        return self == default_view()

    def to_dict(self) -> Dict:
        return {
            'center': list(self.center),
            'zoom': self.zoom,
            'bounds': [list(corner) for corner in self.bounds] if self.bounds else None,
            'commands': [command.to_dict() for command in self.commands],
        }


def default_view() -> ViewportRequest:
    return ViewportRequest(
        center=DEFAULT_CENTER,
        zoom=DEFAULT_ZOOM,
        commands=(SetView(center=DEFAULT_CENTER, zoom=DEFAULT_ZOOM),),
    )


def _bounds_of(points: Sequence[Coordinates]) -> Bounds:
    lats = [lat for lat, _ in points]
    lngs = [lng for _, lng in points]
    return (min(lats), min(lngs)), (max(lats), max(lngs))


def _midpoint(bounds: Bounds) -> Coordinates:
    (south, west), (north, east) = bounds
    return (south + north) / 2, (west + east) / 2


def _point_view(point: Coordinates) -> ViewportRequest:
    return ViewportRequest(center=point, zoom=MEMBER_ZOOM, commands=(SetView(center=point, zoom=MEMBER_ZOOM),))


def _bounds_view(bounds: Bounds, center: Optional[Coordinates] = None) -> ViewportRequest:
    return ViewportRequest(
        center=center or _midpoint(bounds),
        bounds=bounds,
        commands=(FitBounds(bounds=bounds),),
    )


def compute_member_viewport(member: Member) -> ViewportRequest:
    """Frame a selected member.

    Members living outside their origin country get a padded box around both
    points followed by a delayed pan to the midpoint; everyone else is centred
    on the origin marker.
    """
    origin = member.origin.coordinates
    if origin is None:
        return default_view()
    if not member.has_distinct_current:
        return _point_view(origin)
    bounds = _bounds_of([origin, member.current.coordinates])  # type: ignore[union-attr, list-item]
    midpoint = _midpoint(bounds)
    return ViewportRequest(
        center=midpoint,
        bounds=bounds,
        commands=(FitBounds(bounds=bounds), PanTo(center=midpoint)),
    )


def compute_country_viewport(country: str, members: Optional[Sequence[Member]] = None) -> ViewportRequest:
    """Frame a selected origin country.

    Countries outside ``COUNTRY_REGIONS`` fall back to the world view unless
    ``members`` is given, in which case the box around that country's member
    origins is used.
    """
    if not country:
        return default_view()
    region = COUNTRY_REGIONS.get(country)
    if region is not None:
        return _bounds_view(region.bounds, region.center)
    points = [
        member.origin.coordinates
        for member in members or []
        if member.origin.country == country and member.origin.coordinates is not None
    ]
    if not points:
        return default_view()
    bounds = _bounds_of(points)
    if bounds[0] == bounds[1]:
        return _point_view(points[0])
    return _bounds_view(bounds)


def origin_marker(member: Member, color: str) -> Dict:
    return {
        'type': 'marker',
        'kind': 'origin',
        'memberId': member.id,
        'position': list(member.origin.coordinates or DEFAULT_CENTER),
        'color': color,
    }


def selection_overlays(member: Member) -> List[Dict]:
    """Current-location marker and the dashed line back to origin, when they apply."""
    if not member.has_distinct_current:
        return []
    origin = list(member.origin.coordinates)  # type: ignore[arg-type]
    current = list(member.current.coordinates)  # type: ignore[union-attr, arg-type]
    return [
        {'type': 'marker', 'kind': 'current', 'memberId': member.id, 'position': current},
        {
            'type': 'polyline',
            'memberId': member.id,
            'positions': [origin, current],
            'color': CURRENT_LINE_COLOR,
            'dashArray': CURRENT_LINE_DASH,
        },
    ]
