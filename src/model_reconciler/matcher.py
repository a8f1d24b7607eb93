"""
Cross-Source Matcher

Finds the record in another source's index that corresponds to a given model
identifier. Everything here is synchronous and deterministic given its inputs.

Matching strategy:
1. Strict tiers (exact, lowercase, normalized, bare name) for the catalog and
   the pricing table
2. Candidate-key expansion plus a prefix-overlap fallback for leaderboards
3. A scored fuzzy matcher for locally-run "family:size" identifiers
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence, TypeVar

from .index import ModelIndex
from .models import CatalogEntry
from .normalization import (
    aggressive_normalize,
    bare_model_name,
    candidate_keys,
    catalog_keys,
    hyphenate,
    split_local_tag,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

# Name tokens marking an instruction/chat-tuned variant
TUNED_MARKERS = frozenset({"instruct", "it", "chat"})

INSTRUCT_BONUS = 2.0
PAID_BONUS = 1.0
LENGTH_PENALTY = 0.01

_TOKEN_SPLIT = re.compile(r"[-_.:]")


def _tokens(name: str) -> List[str]:
    return [t for t in _TOKEN_SPLIT.split(name) if t]


def _contains_on_boundary(haystack: str, needle: str) -> bool:
    """True if ``needle`` occurs in ``haystack`` delimited by separators or the ends."""
    pattern = r"(?:^|[-_.:])" + re.escape(needle) + r"(?:$|[-_.:])"
    return re.search(pattern, haystack) is not None


class ModelMatcher:
    """
    Resolves identifiers across sources.

    ``prefix_min_length`` and ``local_min_score`` are the confidence knobs for
    the two heuristic paths: a prefix match needs at least that many shared
    leading characters, and a local fuzzy match scoring below
    ``local_min_score`` is rejected (``None`` accepts the best candidate).
    """

    def __init__(
        self,
        prefix_min_length: int = 4,
        local_min_score: Optional[float] = None,
    ):
        self.prefix_min_length = prefix_min_length
        self.local_min_score = local_min_score

    # ---------- Strict Matching ----------

    def match_strict(self, identifier: str, index: ModelIndex[R]) -> Optional[R]:
        """Catalog-style lookup: exact, lowercase, normalized, then bare name."""
        hit = index.first_match(catalog_keys(identifier))
        if hit is None:
            return None
        key, record = hit
        logger.debug("strict match: %s -> key %r", identifier, key)
        return record

    def match_first(
        self, identifiers: Iterable[Optional[str]], index: ModelIndex[R]
    ) -> Optional[R]:
        """Strict lookup for each identifier in turn; first hit wins."""
        for identifier in identifiers:
            if not identifier:
                continue
            record = self.match_strict(identifier, index)
            if record is not None:
                return record
        return None

    # ---------- Fuzzy Matching ----------

    def match(self, identifier: str, index: ModelIndex[R]) -> Optional[R]:
        """
        Find the best record for ``identifier`` in ``index``.

        Tries the identifier as-is, lowercased, and then each generated
        candidate key; if none hits, scans the index for a key that is a
        prefix of the aggressively-normalized name or vice versa.
        """
        keys = [identifier, identifier.lower()] + candidate_keys(identifier)
        hit = index.first_match(keys)
        if hit is not None:
            key, record = hit
            logger.debug("candidate match: %s -> key %r", identifier, key)
            return record

        return self._match_prefix(identifier, index)

    def _match_prefix(self, identifier: str, index: ModelIndex[R]) -> Optional[R]:
        probe = aggressive_normalize(bare_model_name(identifier))
        if len(probe) < self.prefix_min_length:
            return None

        for key, record in index.items():
            if len(key) < self.prefix_min_length:
                continue
            if key.startswith(probe) or probe.startswith(key):
                logger.debug("prefix match: %s -> key %r", identifier, key)
                return record
        return None

    # ---------- Locally-Run Models ----------

    def match_local(
        self, identifier: str, index: ModelIndex[CatalogEntry]
    ) -> Optional[CatalogEntry]:
        """
        Fuzzy-match a locally-run "family:size" identifier to a catalog entry.

        Candidates must contain the hyphenated family name and, when given,
        the size tag as a whole token. Scoring: +2 for instruction/chat-tuned
        variants, +1 for non-free listings, minus 0.01 per character of the
        bare name. Ties go to the entry enumerated first.
        """
        family, size_tag = split_local_tag(identifier)
        family_norm = hyphenate(family)
        if not family_norm:
            return None

        best: Optional[CatalogEntry] = None
        best_score = 0.0
        considered = 0

        for entry in index.records():
            name = bare_model_name(entry.id)
            if not _contains_on_boundary(name, family_norm):
                continue
            tokens = _tokens(name)
            if size_tag and size_tag not in tokens:
                continue

            considered += 1
            score = self.score_local_candidate(entry.id, name, tokens)
            if best is None or score > best_score:
                best, best_score = entry, score

        if best is None:
            return None

        if self.local_min_score is not None and best_score < self.local_min_score:
            logger.debug(
                "local fuzzy match rejected: %s -> %s (score %.2f < %.2f)",
                identifier,
                best.id,
                best_score,
                self.local_min_score,
            )
            return None

        logger.debug(
            "local fuzzy match: %s -> %s (%d candidates)", identifier, best.id, considered
        )
        return best

    @staticmethod
    def score_local_candidate(entry_id: str, name: str, tokens: Sequence[str]) -> float:
        score = 0.0
        if TUNED_MARKERS.intersection(tokens) or "instruct" in name:
            score += INSTRUCT_BONUS
        if ":free" not in entry_id:
            score += PAID_BONUS
        score -= len(name) * LENGTH_PENALTY
        return score
