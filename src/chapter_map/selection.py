from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Sequence

from chapter_map.filters import FilterState, filter_members
from chapter_map.members import Member
from chapter_map.viewport import ViewportRequest, compute_country_viewport, compute_member_viewport, default_view


@dataclass(frozen=True)
class MapState:
    """Filter choice plus at most one selected member."""

    filters: FilterState = field(default_factory=FilterState)
    selected_member_id: Optional[str] = None

    def to_dict(self) -> Dict:
        return {'filters': self.filters.to_dict(), 'selectedMemberId': self.selected_member_id}


def select_member(state: MapState, member_id: Optional[str]) -> MapState:
    return replace(state, selected_member_id=member_id)


def select_tag(state: MapState, tag: str) -> MapState:
    return replace(state, filters=replace(state.filters, tag=tag))


def select_country(state: MapState, country: str) -> MapState:
    return replace(state, filters=replace(state.filters, country=country))


def clear() -> MapState:
    return MapState()


def selected_member(state: MapState, members: Sequence[Member]) -> Optional[Member]:
    if state.selected_member_id is None:
        return None
    for member in members:
        if member.id == state.selected_member_id:
            return member
    return None


def visible_members(state: MapState, members: Sequence[Member]) -> list[Member]:
    return filter_members(members, state.filters)


def viewport_for_state(state: MapState, members: Sequence[Member]) -> ViewportRequest:
    """A selected member wins over the country filter; nothing selected means world view."""
    member = selected_member(state, members)
    if member is not None:
        return compute_member_viewport(member)
    if state.filters.country:
        return compute_country_viewport(state.filters.country)
    return default_view()
