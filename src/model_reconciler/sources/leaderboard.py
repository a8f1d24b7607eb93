"""
LMArena Leaderboard Scraper

Fetches one competitive-ranking category from arena.ai. The leaderboard pages
are Next.js apps that embed their data in ``self.__next_f.push([1,"..."])``
script payloads, so entries are recovered from those payloads (and, as a
second pass, from the raw HTML) rather than from a rendered table.
"""

import json
import logging
import re
from typing import Iterator, List, Optional, Set

from bs4 import BeautifulSoup

from ..models import LeaderboardEntry, benchmark_source
from .base import DataSourceAdapter

logger = logging.getLogger(__name__)

ARENA_BASE_URL = "https://arena.ai/leaderboard"

FLIGHT_PUSH_PREFIX = 'self.__next_f.push([1,"'

ENTRY_PATTERN = re.compile(
    r'\{[^{}]*?"modelDisplayName"\s*:\s*"([^"]+?)"[^{}]*?"rating"\s*:\s*([\d.]+)[^{}]*?\}'
)
_RANK = re.compile(r'"rank"\s*:\s*(\d+)')
_RATING_UPPER = re.compile(r'"ratingUpper"\s*:\s*([\d.]+)')
_RATING_LOWER = re.compile(r'"ratingLower"\s*:\s*([\d.]+)')
_VOTES = re.compile(r'"votes"\s*:\s*(\d+)')


def _unescape_js(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"')
    except ValueError:
        return (
            raw.replace('\\"', '"')
            .replace("\\n", "\n")
            .replace("\\t", "\t")
            .replace("\\\\", "\\")
        )


def iter_flight_payloads(text: str) -> Iterator[str]:
    """Yield the unescaped string argument of every flight-data push in ``text``."""
    start = 0
    while True:
        prefix_idx = text.find(FLIGHT_PUSH_PREFIX, start)
        if prefix_idx == -1:
            return

        i = content_start = prefix_idx + len(FLIGHT_PUSH_PREFIX)
        while i < len(text):
            if text[i] == "\\":
                i += 2
                continue
            if text[i] == '"':
                break
            i += 1

        start = i + 1
        yield _unescape_js(text[content_start:i])


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number_or(value, default: float) -> float:
    """``value`` as a float; null, missing or non-numeric fields take ``default``."""
    return float(value) if _is_number(value) else float(default)


def _search_float(pattern: re.Pattern, text: str, default: float) -> float:
    match = pattern.search(text)
    return float(match.group(1)) if match else default


def _search_int(pattern: re.Pattern, text: str) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match else 0


def extract_entries(
    text: str, category: str, entries: List[LeaderboardEntry], seen: Set[str]
) -> None:
    """Append every new ``{modelDisplayName, rating, ...}`` object found in ``text``."""
    for match in ENTRY_PATTERN.finditer(text):
        display_name = match.group(1)
        if display_name in seen:
            continue

        try:
            obj = json.loads(match.group(0))
        except ValueError:
            obj = None

        if isinstance(obj, dict) and _is_number(obj.get("rating")):
            rating = float(obj["rating"])
            try:
                entry = LeaderboardEntry(
                    category=category,
                    display_name=obj.get("modelDisplayName") or display_name,
                    rating=rating,
                    rating_upper=_number_or(obj.get("ratingUpper"), rating),
                    rating_lower=_number_or(obj.get("ratingLower"), rating),
                    rank=int(_number_or(obj.get("rank"), 0)),
                    votes=int(_number_or(obj.get("votes"), 0)),
                )
            except (TypeError, ValueError) as err:
                logger.warning("Skipping leaderboard row %r: %s", display_name, err)
                continue
            seen.add(display_name)
            entries.append(entry)
            continue

        # Partial object: take what the field patterns can recover
        try:
            rating = float(match.group(2))
        except ValueError:
            continue
        raw = match.group(0)
        seen.add(display_name)
        entries.append(
            LeaderboardEntry(
                category=category,
                display_name=display_name,
                rating=rating,
                rating_upper=_search_float(_RATING_UPPER, raw, rating),
                rating_lower=_search_float(_RATING_LOWER, raw, rating),
                rank=_search_int(_RANK, raw),
                votes=_search_int(_VOTES, raw),
            )
        )


def parse_leaderboard_html(html: str, category: str) -> List[LeaderboardEntry]:
    entries: List[LeaderboardEntry] = []
    seen: Set[str] = set()

    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script"):
        script_text = script.string or script.get_text()
        if not script_text or FLIGHT_PUSH_PREFIX not in script_text:
            continue
        for payload in iter_flight_payloads(script_text):
            extract_entries(payload, category, entries, seen)

    # Data may also sit unescaped in __NEXT_DATA__ or other inline markup
    extract_entries(html, category, entries, seen)
    return entries


class LMArenaAdapter(DataSourceAdapter[List[LeaderboardEntry]]):
    """Scrapes one LMArena leaderboard category (text, code, vision, ...)."""

    def __init__(self, category: str, *args, base_url: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.category = category
        self.source_name = benchmark_source(category)
        self.endpoint = f"{base_url or ARENA_BASE_URL}/{category}"
        self.cache_key = f"lmarena_{category.replace('-', '_')}"

    async def _fetch_remote(self) -> List[LeaderboardEntry]:
        response = await self._http_get(self.endpoint, accept="text/html")
        entries = parse_leaderboard_html(response.text, self.category)
        if not entries:
            raise self._unavailable(f"no entries parsed from LMArena {self.category} page")

        logger.info(
            "Fetched %d entries from LMArena %s leaderboard", len(entries), self.category
        )
        return entries
