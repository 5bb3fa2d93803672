import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / 'src'))

from chapter_map import viewport  # noqa: E402
from chapter_map.members import Location, Member  # noqa: E402


def _member(origin, current=None, origin_country='Chile', member_id='1'):
    return Member(
        id=member_id,
        name='Ana Pérez',
        institute='',
        email='',
        bio='',
        origin=Location(country=origin_country, coordinates=origin),
        current=current,
    )


def test_member_without_current_is_centred_on_origin():
    request = viewport.compute_member_viewport(_member((-33.4, -70.6)))

    assert request.center == (-33.4, -70.6)
    assert request.bounds is None
    assert request.zoom == viewport.MEMBER_ZOOM
    assert request.commands == (viewport.SetView(center=(-33.4, -70.6), zoom=viewport.MEMBER_ZOOM),)


def test_member_living_in_same_country_is_a_single_point():
    member = _member((-33.4, -70.6), Location(country='Chile', coordinates=(-36.8, -73.0)))

    request = viewport.compute_member_viewport(member)

    assert request.bounds is None
    assert request.center == (-33.4, -70.6)


def test_member_abroad_fits_both_points_then_pans_to_midpoint():
    member = _member((-33.4, -70.6), Location(country='Spain', coordinates=(40.4, -3.7)))

    request = viewport.compute_member_viewport(member)

    assert request.bounds == ((-33.4, -70.6), (40.4, -3.7))
    fit, pan = request.commands
    assert isinstance(fit, viewport.FitBounds)
    assert fit.padding == viewport.FIT_PADDING
    assert isinstance(pan, viewport.PanTo)
    assert pan.delay_ms == viewport.SETTLE_DELAY_MS
    assert pan.center == pytest.approx((3.5, -37.15))
    assert request.center == pan.center


def test_country_in_region_table_uses_fixed_box():
    region = viewport.COUNTRY_REGIONS['Brazil']

    request = viewport.compute_country_viewport('Brazil')

    assert request.center == region.center
    assert request.bounds == region.bounds
    assert request.commands == (viewport.FitBounds(bounds=region.bounds),)


def test_unknown_country_and_cleared_country_reset_to_world_view():
    assert viewport.compute_country_viewport('Atlantis').is_default
    assert viewport.compute_country_viewport('').is_default
    default = viewport.default_view()
    assert default.center == viewport.DEFAULT_CENTER
    assert default.zoom == viewport.DEFAULT_ZOOM


def test_unknown_country_can_fit_member_origins():
    members = [
        _member((18.5, -69.9), origin_country='Dominican Republic', member_id='1'),
        _member((19.4, -70.7), origin_country='Dominican Republic', member_id='2'),
        _member((-33.4, -70.6), member_id='3'),
    ]

    request = viewport.compute_country_viewport('Dominican Republic', members)

    assert request.bounds == ((18.5, -70.7), (19.4, -69.9))
    single = viewport.compute_country_viewport('Dominican Republic', members[:1])
    assert single.bounds is None
    assert single.center == (18.5, -69.9)


def test_selection_overlays_only_for_members_abroad():
    home = _member((-33.4, -70.6))
    abroad = _member((-33.4, -70.6), Location(country='Spain', coordinates=(40.4, -3.7)))

    assert viewport.selection_overlays(home) == []
    marker, line = viewport.selection_overlays(abroad)
    assert marker['kind'] == 'current'
    assert marker['position'] == [40.4, -3.7]
    assert line['positions'] == [[-33.4, -70.6], [40.4, -3.7]]
    assert line['dashArray'] == viewport.CURRENT_LINE_DASH


def test_request_serialises_commands_in_order():
    member = _member((-33.4, -70.6), Location(country='Spain', coordinates=(40.4, -3.7)))

    payload = viewport.compute_member_viewport(member).to_dict()

    assert [command['type'] for command in payload['commands']] == ['fitBounds', 'panTo']
    assert payload['commands'][1]['delayMs'] == 100
    assert payload['bounds'] == [[-33.4, -70.6], [40.4, -3.7]]
