"""Origin marker colours.

Members from the same origin country share a hue; each one further down the
sheet gets a darker shade so overlapping markers stay distinguishable.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

from chapter_map.members import Member

ORIGIN_HUE = 0
ORIGIN_SATURATION = 100
BASE_LIGHTNESS = 70
LIGHTNESS_STEP = 15
LIGHTNESS_FLOOR = 40


@dataclass(frozen=True)
class MarkerColor:
    hue: int
    saturation: int
    lightness: int

    @property
    def css(self) -> str:
        return f'hsl({self.hue},{self.saturation}%,{self.lightness}%)'


def _lightness(rank: int) -> int:
    return max(LIGHTNESS_FLOOR, BASE_LIGHTNESS - rank * LIGHTNESS_STEP)


def country_rank(members: Sequence[Member], country: str, member_id: str) -> int:
    peers = [member.id for member in members if member.origin.country == country]
    try:
        return peers.index(member_id)
    except ValueError:
        raise KeyError(f"Member {member_id!r} has no origin in {country!r}") from None


def color_for(members: Sequence[Member], country: str, member_id: str) -> MarkerColor:
    rank = country_rank(members, country, member_id)
    return MarkerColor(hue=ORIGIN_HUE, saturation=ORIGIN_SATURATION, lightness=_lightness(rank))


def assign_colors(members: Sequence[Member]) -> Dict[str, MarkerColor]:
    """Colour for every member, ranked by sheet order within each origin country."""
    ranks: Dict[str, int] = {}
    colors: Dict[str, MarkerColor] = {}
    for member in members:
        rank = ranks.get(member.origin.country, 0)
        ranks[member.origin.country] = rank + 1
        colors[member.id] = MarkerColor(hue=ORIGIN_HUE, saturation=ORIGIN_SATURATION, lightness=_lightness(rank))
    return colors
