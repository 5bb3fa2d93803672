"""Member records and the row parser that builds them from spreadsheet rows."""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

Coordinates = Tuple[float, float]
Cell = Union[str, int, float, None]

SHEET_COLUMNS = [
    'id',
    'name',
    'institute',
    'email',
    'bio',
    'originCountry',
    'originLatitude',
    'originLongitude',
    'currentLocation',
    'currentLatitude',
    'currentLongitude',
    'researchTags',
    'image',
]

MISSING_ORIGIN_COORDINATES = 'missing-origin-coordinates'
DUPLICATE_ID = 'duplicate-id'


@dataclass(frozen=True)
class Location:
    country: str
    coordinates: Optional[Coordinates] = None

    def to_dict(self) -> Dict:
        return {
            'country': self.country,
            'coordinates': list(self.coordinates) if self.coordinates else None,
        }


@dataclass(frozen=True)
class Member:
    id: str
    name: str
    institute: str
    email: str
    bio: str
    origin: Location
    current: Optional[Location] = None
    research_tags: Tuple[str, ...] = ()
    image: Optional[str] = None

    @property
    def has_distinct_current(self) -> bool:
        """True when the member lives somewhere other than their origin country."""
        return (
            self.current is not None
            and self.current.coordinates is not None
            and self.current.country != self.origin.country
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'initials': initials(self.name),
            'institute': self.institute,
            'email': self.email,
            'bio': self.bio,
            'origin': self.origin.to_dict(),
            'current': self.current.to_dict() if self.current else None,
            'researchTags': list(self.research_tags),
            'image': self.image,
        }


@dataclass(frozen=True)
class RowRejected:
    row_number: int
    row_id: str
    reason: str


@dataclass
class ParseReport:
    members: List[Member] = field(default_factory=list)
    rejections: List[RowRejected] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.members

    def rejection_counts(self) -> Dict[str, int]:
        return dict(Counter(rejection.reason for rejection in self.rejections))


def _is_blank(value: Cell) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _text(value: Cell) -> str:
    if _is_blank(value):
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _coordinate(value: Cell, limit: float) -> Optional[float]:
    if _is_blank(value) or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or abs(number) > limit:
        return None
    return number


def _coordinate_pair(latitude: Cell, longitude: Cell) -> Optional[Coordinates]:
    lat = _coordinate(latitude, 90.0)
    lng = _coordinate(longitude, 180.0)
    if lat is None or lng is None:
        return None
    return lat, lng


def _split_tags(value: Cell) -> Tuple[str, ...]:
    return tuple(tag.strip() for tag in _text(value).split(',') if tag.strip())


def initials(name: str) -> str:
    return ''.join(token[0] for token in name.split())


def parse_row(row: Mapping[str, Cell], row_number: int = 0) -> Union[Member, RowRejected]:
    """Turn one sheet row into a ``Member``.

    Numbers may arrive typed or as strings. A row whose origin latitude or
    longitude is missing, non-numeric or out of range is returned as a
    ``RowRejected`` instead of raising, so callers choose between skipping
    and aborting. Unusable current coordinates only drop ``current.coordinates``.
    """
    row_id = _text(row.get('id'))
    origin_coordinates = _coordinate_pair(row.get('originLatitude'), row.get('originLongitude'))
    if origin_coordinates is None:
        return RowRejected(row_number=row_number, row_id=row_id, reason=MISSING_ORIGIN_COORDINATES)

    current_country = _text(row.get('currentLocation'))
    current_coordinates = _coordinate_pair(row.get('currentLatitude'), row.get('currentLongitude'))
    current = None
    if current_country or current_coordinates:
        current = Location(country=current_country, coordinates=current_coordinates)

    return Member(
        id=row_id,
        name=_text(row.get('name')),
        institute=_text(row.get('institute')),
        email=_text(row.get('email')),
        bio=_text(row.get('bio')),
        origin=Location(country=_text(row.get('originCountry')), coordinates=origin_coordinates),
        current=current,
        research_tags=_split_tags(row.get('researchTags')),
        image=_text(row.get('image')) or None,
    )


def parse_rows(rows: Iterable[Mapping[str, Cell]]) -> ParseReport:
    # Rows are numbered from 2 so they match spreadsheet line numbers under the header.
    report = ParseReport()
    seen_ids = set()
    for row_number, row in enumerate(rows, start=2):
        result = parse_row(row, row_number)
        if isinstance(result, RowRejected):
            report.rejections.append(result)
            continue
        if result.id in seen_ids:
            report.rejections.append(RowRejected(row_number=row_number, row_id=result.id, reason=DUPLICATE_ID))
            continue
        seen_ids.add(result.id)
        report.members.append(result)
    return report
