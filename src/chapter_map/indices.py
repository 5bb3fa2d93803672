from __future__ import annotations

from typing import Iterable, List

from chapter_map.members import Member

ALL_TAGS = 'all'
ALL_COUNTRIES = ''


def build_tag_index(members: Iterable[Member]) -> List[str]:
    """Sorted distinct research tags, led by the ``"all"`` selector."""
    tags = {tag for member in members for tag in member.research_tags}
    tags.discard(ALL_TAGS)
    return [ALL_TAGS] + sorted(tags)


def build_country_index(members: Iterable[Member]) -> List[str]:
    return sorted({member.origin.country for member in members if member.origin.country})
