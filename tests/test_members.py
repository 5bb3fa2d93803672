import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / 'src'))

from chapter_map.members import (  # noqa: E402
    DUPLICATE_ID,
    MISSING_ORIGIN_COORDINATES,
    Location,
    Member,
    RowRejected,
    initials,
    parse_row,
    parse_rows,
)


def _row(**overrides):
    row = {
        'id': '1',
        'name': 'Ana María Pérez',
        'institute': 'Universidad de Chile',
        'email': 'ana@example.org',
        'bio': 'Marine ecologist.',
        'originCountry': 'Chile',
        'originLatitude': '-33.4',
        'originLongitude': '-70.6',
        'currentLocation': 'Spain',
        'currentLatitude': '40.4',
        'currentLongitude': '-3.7',
        'researchTags': 'ecology, oceans',
        'image': 'ana.jpg',
    }
    row.update(overrides)
    return row


def test_parse_row_builds_member_with_origin_and_current():
    member = parse_row(_row())

    assert isinstance(member, Member)
    assert member.id == '1'
    assert member.origin == Location(country='Chile', coordinates=(-33.4, -70.6))
    assert member.current == Location(country='Spain', coordinates=(40.4, -3.7))
    assert member.research_tags == ('ecology', 'oceans')
    assert member.image == 'ana.jpg'
    assert member.has_distinct_current


def test_parse_row_rejects_non_numeric_origin():
    row = {'id': 1, 'originLatitude': '-15.5', 'originLongitude': 'not-a-number', 'researchTags': 'bio, chem ,'}

    result = parse_row(row, row_number=7)

    assert result == RowRejected(row_number=7, row_id='1', reason=MISSING_ORIGIN_COORDINATES)


@pytest.mark.parametrize(
    'latitude, longitude',
    [
        ('', '-70.6'),
        ('-33.4', None),
        (float('nan'), -70.6),
        ('inf', '-70.6'),
        ('95', '-70.6'),
        ('-33.4', '-181'),
        (True, -70.6),
    ],
)
def test_parse_row_rejects_unusable_origin(latitude, longitude):
    result = parse_row(_row(originLatitude=latitude, originLongitude=longitude))

    assert isinstance(result, RowRejected)
    assert result.reason == MISSING_ORIGIN_COORDINATES


def test_parse_row_accepts_typed_numbers_and_float_ids():
    member = parse_row(_row(id=12.0, originLatitude=-33.4, originLongitude=-70.6))

    assert member.id == '12'
    assert member.origin.coordinates == (-33.4, -70.6)


def test_unparseable_current_coordinates_are_dropped_not_rejected():
    member = parse_row(_row(currentLatitude='north', currentLongitude='-3.7'))

    assert isinstance(member, Member)
    assert member.current == Location(country='Spain', coordinates=None)
    assert not member.has_distinct_current


def test_missing_current_fields_leave_current_absent():
    member = parse_row(_row(currentLocation='', currentLatitude='', currentLongitude=float('nan')))

    assert member.current is None


def test_research_tags_are_trimmed_and_blank_segments_dropped():
    member = parse_row(_row(researchTags=' bio, chem ,, bio '))

    assert member.research_tags == ('bio', 'chem', 'bio')
    assert all(tag == tag.strip() and tag for tag in member.research_tags)


def test_blank_text_fields_become_empty_strings():
    member = parse_row(_row(email=None, bio=float('nan'), institute='', researchTags='', image=''))

    assert member.email == ''
    assert member.bio == ''
    assert member.institute == ''
    assert member.research_tags == ()
    assert member.image is None


def test_parse_rows_keeps_first_duplicate_and_reports_rejections():
    rows = [
        _row(id='1', name='First'),
        _row(id='2', originLatitude='x'),
        _row(id='1', name='Second'),
        _row(id='3'),
    ]

    report = parse_rows(rows)

    assert [member.id for member in report.members] == ['1', '3']
    assert report.members[0].name == 'First'
    assert [(r.row_number, r.reason) for r in report.rejections] == [
        (3, MISSING_ORIGIN_COORDINATES),
        (4, DUPLICATE_ID),
    ]
    assert report.rejection_counts() == {MISSING_ORIGIN_COORDINATES: 1, DUPLICATE_ID: 1}


def test_parse_rows_with_no_valid_rows_is_empty_not_an_error():
    report = parse_rows([_row(originLatitude='')])

    assert report.is_empty
    assert len(report.rejections) == 1


def test_member_to_dict_is_json_ready():
    payload = parse_row(_row()).to_dict()

    assert payload['origin'] == {'country': 'Chile', 'coordinates': [-33.4, -70.6]}
    assert payload['researchTags'] == ['ecology', 'oceans']
    assert payload['initials'] == 'AMP'
    assert not any(isinstance(value, float) and math.isnan(value) for value in payload.values())


def test_initials_take_first_letter_of_each_name_token():
    assert initials('Ana  María Pérez') == 'AMP'
    assert initials('') == ''
