#!/usr/bin/env python3
"""Generate the chapter member map assets (data + HTML) from the published sheet."""
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from chapter_map.colors import assign_colors
from chapter_map.filters import visible_ids_by_filter
from chapter_map.indices import build_country_index, build_tag_index
from chapter_map.members import Member, ParseReport
from chapter_map.selection import MapState
from chapter_map.source import DecodeFailure, FetchFailure, load_members
from chapter_map.viewport import (
    compute_country_viewport,
    compute_member_viewport,
    default_view,
    origin_marker,
    selection_overlays,
)

SHEET_URL = os.environ.get(
    'CHAPTER_MAP_SHEET_URL',
    'https://docs.google.com/spreadsheets/d/e/2PACX-1vTU3J9hVXZ0VwcJAlvxa1FZ3FGZUDD3Y8xNlcXXQ6Wzt6VjLoh6d4EY3QxywLKEQ9ZyWbwyTVaFOryk/pub?output=csv',
)
OUTPUT_DIR = Path(os.environ.get('CHAPTER_MAP_OUTPUT', Path.cwd() / 'member_map'))
TILE_URL = os.environ.get('CHAPTER_MAP_TILE_URL', 'https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png')
TILE_KEY = os.environ.get('CHAPTER_MAP_TILE_KEY', '')
TIMEOUT = float(os.environ.get('CHAPTER_MAP_TIMEOUT', 30))
PAGE_TITLE = os.environ.get('CHAPTER_MAP_TITLE', 'Latin American Chapter Member Map')

DATA_FILENAME = 'member_map_data.js'
HTML_FILENAME = 'member_map.html'


def _display_path(path: Path) -> Path:
    try:
        return path.relative_to(Path.cwd())
    except ValueError:
        return path


def _report_rejections(report: ParseReport) -> None:
    counts = report.rejection_counts()
    if counts:
        summary = ', '.join(f"{reason}: {count}" for reason, count in sorted(counts.items()))
        print(f"⚠️  Skipped {len(report.rejections)} sheet rows ({summary})")
        for rejection in report.rejections:
            print(f"    row {rejection.row_number} (id {rejection.row_id or '–'}): {rejection.reason}")
    if report.is_empty:
        print('⚠️  No member rows survived parsing; the map will be empty.')


def build_payload(members: Sequence[Member], fit_unknown_countries: bool = False) -> Dict:
    tags = build_tag_index(members)
    countries = build_country_index(members)
    colors = assign_colors(members)
    country_members = members if fit_unknown_countries else None
    member_rows: List[Dict] = []
    for member in members:
        row = member.to_dict()
        row['color'] = colors[member.id].css
        member_rows.append(row)
    return {
        'members': member_rows,
        'tags': tags,
        'countries': countries,
        'visible': visible_ids_by_filter(members, tags, countries),
        'originMarkers': [origin_marker(member, colors[member.id].css) for member in members],
        'selectionOverlays': {member.id: selection_overlays(member) for member in members},
        'memberViewports': {member.id: compute_member_viewport(member).to_dict() for member in members},
        'countryViewports': {
            country: compute_country_viewport(country, country_members).to_dict() for country in countries
        },
        'defaultView': default_view().to_dict(),
        'initialState': MapState().to_dict(),
    }


def _write_data_js(payload: Dict, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    data_js = output_dir / DATA_FILENAME
    data_js.write_text(f"window.MEMBER_MAP_DATA = {json.dumps(payload)};\n", encoding='utf-8')
    print(f"✔️  Wrote {_display_path(data_js)}")
    return data_js


def _write_map_html(output_dir: Path, title: str = PAGE_TITLE, tile_url: str = TILE_URL, tile_key: str = TILE_KEY) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    html_path = output_dir / HTML_FILENAME
    html_template = """<!DOCTYPE html>
<html lang='en'>
<head>
  <meta charset='utf-8' />
  <title>__TITLE__</title>
  <meta name='viewport' content='width=device-width, initial-scale=1' />
  <link rel='stylesheet' href='https://unpkg.com/leaflet@1.9.4/dist/leaflet.css' />
  <style>
    * { box-sizing: border-box; }
    body { margin: 0; font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; background: #f8fafc; color: #0f172a; }
    header { padding: 24px 32px 8px; }
    h1 { font-size: 1.6rem; margin: 0; }
    .controls { display: flex; flex-wrap: wrap; gap: 8px; padding: 12px 32px; align-items: center; }
    .chip { border-radius: 999px; border: none; padding: 8px 16px; background: #e5e7eb; color: #374151; cursor: pointer; }
    .chip:hover { background: #d1d5db; }
    .chip.active { background: #2563eb; color: #fff; }
    select, button.clear { padding: 8px 12px; border-radius: 8px; border: 1px solid #cbd5e1; background: #fff; }
    .layout { display: flex; gap: 16px; padding: 0 32px 32px; }
    #map { flex: 1; height: 600px; border-radius: 12px; border: 1px solid #cbd5e1; }
    #detail { flex: none; width: 320px; background: #fff; border: 1px solid #e2e8f0; border-radius: 12px; padding: 16px; box-shadow: 0 10px 30px rgba(15,23,42,0.08); }
    #detail .empty { color: #64748b; text-align: center; margin-top: 40%; }
    .avatar { width: 128px; height: 128px; border-radius: 50%; overflow: hidden; margin: 0 auto 16px; background: #dbeafe; color: #3b82f6; font-size: 1.6rem; font-weight: 700; display: flex; align-items: center; justify-content: center; }
    .avatar img { width: 100%; height: 100%; object-fit: cover; }
    #detail h3 { margin: 0 0 4px; text-align: center; }
    #detail p { margin: 0 0 12px; text-align: center; color: #475569; }
    #error { display: none; color: #ef4444; padding: 12px 32px; }
  </style>
</head>
<body>
<header>
  <h1>__TITLE__</h1>
</header>
<div id='error'>Error loading member data</div>
<div class='controls' id='tag-filters'></div>
<div class='controls'>
  <select id='country-filter'><option value=''>All countries</option></select>
  <button class='clear' id='clear'>Clear selection</button>
</div>
<div class='layout'>
  <div id='map'></div>
  <div id='detail'><div class='empty'>Select a member to view details</div></div>
</div>
<script src='https://unpkg.com/leaflet@1.9.4/dist/leaflet.js'></script>
<script src='__DATA_FILE__'></script>
<script>
  const TILE_URL = '__TILE_URL__';

  function initMemberMap(data) {
    const defaultView = data.defaultView;
    const map = L.map('map', { scrollWheelZoom: true }).setView(defaultView.center, defaultView.zoom);
    L.tileLayer(TILE_URL, {
      attribution: '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors',
    }).addTo(map);

    const membersById = {};
    data.members.forEach((member) => { membersById[member.id] = member; });
    let state = { tag: data.initialState.filters.tag, country: data.initialState.filters.country, selected: null };
    let pendingPan = null;
    const markerLayer = L.layerGroup().addTo(map);
    const selectionLayer = L.layerGroup().addTo(map);

    const applyViewport = (request) => {
      if (pendingPan) clearTimeout(pendingPan);
      request.commands.forEach((command) => {
        if (command.type === 'setView') {
          map.setView(command.center, command.zoom);
        } else if (command.type === 'fitBounds') {
          map.fitBounds(command.bounds, { padding: command.padding });
        } else if (command.type === 'panTo') {
          pendingPan = setTimeout(() => map.panTo(command.center), command.delayMs);
        }
      });
    };

    const el = (tag, className, text) => {
      const node = document.createElement(tag);
      if (className) node.className = className;
      if (text !== undefined) node.textContent = text;
      return node;
    };

    const renderDetail = () => {
      const panel = document.getElementById('detail');
      panel.innerHTML = '';
      const member = state.selected ? membersById[state.selected] : null;
      if (!member) {
        panel.appendChild(el('div', 'empty', 'Select a member to view details'));
        return;
      }
      const avatar = el('div', 'avatar', member.image ? undefined : member.initials);
      if (member.image) {
        const img = document.createElement('img');
        img.src = `./images/${member.image}`;
        img.alt = member.name;
        img.onerror = () => { avatar.textContent = member.initials; };
        avatar.appendChild(img);
      }
      panel.appendChild(avatar);
      panel.appendChild(el('h3', null, member.name));
      panel.appendChild(el('p', null, member.institute));
      let where = `Origin: ${member.origin.country}`;
      if (member.current && member.current.country && member.current.country !== member.origin.country) {
        where += ` · Current: ${member.current.country}`;
      }
      panel.appendChild(el('p', null, where));
      panel.appendChild(el('p', null, member.bio));
      panel.appendChild(el('p', null, `Research areas: ${member.researchTags.join(', ')}`));
      if (member.email) {
        const link = el('a', null, member.email);
        link.href = `mailto:${member.email}`;
        const wrap = el('p');
        wrap.appendChild(link);
        panel.appendChild(wrap);
      }
    };

    const renderMarkers = () => {
      markerLayer.clearLayers();
      selectionLayer.clearLayers();
      const visible = new Set(data.visible[`${state.tag}|${state.country}`] || []);
      data.originMarkers.forEach((marker) => {
        if (!visible.has(marker.memberId)) return;
        L.circleMarker(marker.position, {
          radius: 8,
          color: '#1f2937',
          weight: 1,
          fillColor: marker.color,
          fillOpacity: 0.9,
        }).on('click', () => selectMember(marker.memberId)).addTo(markerLayer);
      });
      if (state.selected && visible.has(state.selected)) {
        (data.selectionOverlays[state.selected] || []).forEach((overlay) => {
          if (overlay.type === 'marker') {
            L.circleMarker(overlay.position, { radius: 8, color: '#1d4ed8', fillColor: '#3b82f6', fillOpacity: 0.9 }).addTo(selectionLayer);
          } else if (overlay.type === 'polyline') {
            L.polyline(overlay.positions, { color: overlay.color, dashArray: overlay.dashArray }).addTo(selectionLayer);
          }
        });
      }
    };

    const renderTags = () => {
      const container = document.getElementById('tag-filters');
      container.innerHTML = '';
      data.tags.forEach((tag) => {
        const button = el('button', tag === state.tag ? 'chip active' : 'chip', tag);
        button.addEventListener('click', () => {
          state.tag = tag;
          renderTags();
          renderMarkers();
        });
        container.appendChild(button);
      });
    };

    const selectMember = (memberId) => {
      state.selected = memberId;
      applyViewport(data.memberViewports[memberId] || defaultView);
      renderMarkers();
      renderDetail();
    };

    const countrySelect = document.getElementById('country-filter');
    data.countries.forEach((country) => {
      const option = el('option', null, country);
      option.value = country;
      countrySelect.appendChild(option);
    });
    countrySelect.addEventListener('change', () => {
      state.country = countrySelect.value;
      state.selected = null;
      applyViewport(state.country ? (data.countryViewports[state.country] || defaultView) : defaultView);
      renderMarkers();
      renderDetail();
    });

    document.getElementById('clear').addEventListener('click', () => {
      state = { tag: data.initialState.filters.tag, country: data.initialState.filters.country, selected: null };
      countrySelect.value = state.country;
      applyViewport(defaultView);
      renderTags();
      renderMarkers();
      renderDetail();
    });

    renderTags();
    renderMarkers();
    renderDetail();
  }

  if (window.MEMBER_MAP_DATA) {
    initMemberMap(window.MEMBER_MAP_DATA);
  } else {
    document.getElementById('error').style.display = 'block';
  }
</script>
</body>
</html>
"""
    resolved_tiles = tile_url.replace('{key}', tile_key)
    html = (
        html_template.replace('__TITLE__', title)
        .replace('__DATA_FILE__', DATA_FILENAME)
        .replace('__TILE_URL__', resolved_tiles)
    )
    html_path.write_text(html, encoding='utf-8')
    print(f"✔️  Wrote {_display_path(html_path)}")
    return html_path


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Build the chapter member map from the published member sheet.')
    parser.add_argument('--url', default=SHEET_URL, help='Published CSV URL of the member sheet')
    parser.add_argument('--csv', type=Path, help='Read a local CSV export instead of fetching the sheet')
    parser.add_argument('--output', type=Path, default=OUTPUT_DIR, help='Directory for the generated assets')
    parser.add_argument('--strict', action='store_true', help='Fail when any sheet row is rejected')
    parser.add_argument(
        '--fit-unknown-countries',
        action='store_true',
        help='Frame countries without a known region around their members instead of the world view',
    )
    args = parser.parse_args(argv)

    try:
        report = load_members(args.url, path=args.csv, timeout=TIMEOUT)
    except (FetchFailure, DecodeFailure) as exc:
        print(f"Error fetching spreadsheet data: {exc}", file=sys.stderr)
        return 1

    print(f"✔️  Parsed {len(report.members)} members")
    _report_rejections(report)
    if args.strict and report.rejections:
        print('Aborting: --strict set and rows were rejected.', file=sys.stderr)
        return 1

    payload = build_payload(report.members, fit_unknown_countries=args.fit_unknown_countries)
    payload['rejections'] = report.rejection_counts()
    _write_data_js(payload, args.output)
    _write_map_html(args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
