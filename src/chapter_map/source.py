"""Fetch and decode the published member spreadsheet."""
from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, List, Optional

import pandas as pd
import requests

from chapter_map.members import SHEET_COLUMNS, ParseReport, parse_rows

CHUNK_SIZE = 16 * 1024


class FetchFailure(RuntimeError):
    pass


class FetchCancelled(FetchFailure):
    pass


class DecodeFailure(RuntimeError):
    pass


def fetch_sheet_csv(
    url: str,
    timeout: float = 30,
    should_stop: Optional[Callable[[], bool]] = None,
) -> str:
    """Download the CSV export, checking ``should_stop`` between body chunks."""
    try:
        response = requests.get(url, timeout=timeout, stream=True)
    except requests.RequestException as exc:
        raise FetchFailure(f"Sheet request failed: {exc}") from exc
    try:
        response.raise_for_status()
        chunks: List[bytes] = []
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if should_stop and should_stop():
                raise FetchCancelled('Sheet download cancelled.')
            if chunk:
                chunks.append(chunk)
    except requests.RequestException as exc:
        raise FetchFailure(f"Sheet request failed: {exc}") from exc
    finally:
        response.close()
    # requests assumes latin-1 for text/* without a charset; sheet exports are UTF-8.
    content_type = response.headers.get('content-type', '').lower()
    encoding = response.encoding if 'charset=' in content_type and response.encoding else 'utf-8-sig'
    try:
        return b''.join(chunks).decode(encoding)
    except (LookupError, UnicodeDecodeError) as exc:
        raise DecodeFailure(f"Sheet payload is not valid text: {exc}") from exc


def read_sheet_file(path: Path) -> str:
    if not path.exists():
        raise FetchFailure(f"Missing source file: {path}")
    try:
        return path.read_text(encoding='utf-8')
    except UnicodeDecodeError as exc:
        raise DecodeFailure(f"{path} is not valid UTF-8: {exc}") from exc


def decode_sheet_csv(text: str) -> pd.DataFrame:
    """Parse CSV text into a frame of raw strings (blank cells stay empty strings)."""
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DecodeFailure(f"Sheet payload is not valid CSV: {exc}") from exc
    df.columns = [str(col).strip() for col in df.columns]
    missing = set(SHEET_COLUMNS) - set(df.columns)
    if missing:
        raise DecodeFailure(f"Sheet CSV missing columns: {sorted(missing)}")
    return df


def load_members(
    url: Optional[str] = None,
    *,
    path: Optional[Path] = None,
    timeout: float = 30,
    should_stop: Optional[Callable[[], bool]] = None,
) -> ParseReport:
    if path is not None:
        text = read_sheet_file(path)
    elif url:
        text = fetch_sheet_csv(url, timeout=timeout, should_stop=should_stop)
    else:
        raise ValueError('Either a sheet URL or a local CSV path is required.')
    df = decode_sheet_csv(text)
    return parse_rows(df.to_dict(orient='records'))
