from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Sequence

from chapter_map.indices import ALL_COUNTRIES, ALL_TAGS
from chapter_map.members import Member


@dataclass(frozen=True)
class FilterState:
    tag: str = ALL_TAGS
    country: str = ALL_COUNTRIES

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def _passes(member: Member, state: FilterState) -> bool:
    tag_ok = state.tag == ALL_TAGS or state.tag in member.research_tags
    country_ok = state.country == ALL_COUNTRIES or state.country == member.origin.country
    return tag_ok and country_ok


def filter_members(members: Sequence[Member], state: FilterState) -> List[Member]:
    """Order-preserving subsequence of ``members`` matching both the tag and the country."""
    return [member for member in members if _passes(member, state)]


def filter_key(tag: str, country: str) -> str:
    return f'{tag}|{country}'


def visible_ids_by_filter(
    members: Sequence[Member],
    tags: Iterable[str],
    countries: Iterable[str],
) -> Dict[str, List[str]]:
    """Visible member ids for every tag/country pair, keyed by ``filter_key``.

    ``countries`` is the country index; the empty sentinel is always added.
    """
    country_choices = [ALL_COUNTRIES] + [country for country in countries if country != ALL_COUNTRIES]
    visible: Dict[str, List[str]] = {}
    for tag in tags:
        for country in country_choices:
            state = FilterState(tag=tag, country=country)
            visible[filter_key(tag, country)] = [member.id for member in filter_members(members, state)]
    return visible
