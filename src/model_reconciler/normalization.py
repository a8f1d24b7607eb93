"""
Model Identifier Normalization

Pure functions that turn a raw model identifier into canonical forms and into
ordered candidate keys for cross-source lookup.

Every transformation is a table of (pattern, replacement) rules applied in
order, so a new naming convention is one more row rather than another branch.
"""

import re
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

Rule = Tuple[Pattern[str], str]


def _rules(*pairs: Tuple[str, str]) -> List[Rule]:
    return [(re.compile(pattern, re.IGNORECASE), repl) for pattern, repl in pairs]


def apply_rules(value: str, rules: Sequence[Rule]) -> str:
    """Apply each rule once, in order."""
    for pattern, repl in rules:
        value = pattern.sub(repl, value)
    return value


# ============================================================================
# Rule Tables
# ============================================================================

# Leading qualifiers on the final path segment:
#   "us.anthropic.claude-3-5-sonnet" -> "claude-3-5-sonnet"
SEGMENT_PREFIX_RULES = _rules(
    (r"^(us|eu|apac|global)\.", ""),
    (r"^(anthropic|meta|amazon|cohere|mistral|ai21)\.", ""),
)

# Bedrock-style version suffixes: "-v1:0", "-v2:0"
VERSION_SUFFIX_RULES = _rules((r"-v\d+:\d+$", ""))

# Locally-run size tags: "gemma3:4b" -> "gemma3"
LOCAL_TAG_RULES = _rules((r":\w+$", ""))

NORMALIZE_RULES = _rules(
    (r":free$", ""),
    (r":extended$", ""),
    (r"-v\d+:\d+$", ""),
    (r"-\d{4}-\d{2}(-\d{2})?$", ""),
    (r"-\d{8}$", ""),
    (r"-preview$", ""),
    (r"-latest$", ""),
    (r"-instruct$", ""),
    (r"-chat$", ""),
    (r"-\d{4}$", ""),
)

AGGRESSIVE_RULES = _rules(
    (r"-instruct$", ""),
    (r"-chat$", ""),
    (r"-hf$", ""),
    (r"-online$", ""),
    (r"-\d{4}$", ""),
    (r"-exp$", ""),
    (r"-0\d{2}$", ""),
    (r"\.", "-"),
)

HYPHENATE_RULES = _rules(
    (r"([a-z])(\d)", r"\1-\2"),
    (r"(\d)([a-z])", r"\1-\2"),
)

DATE_SUFFIX_RULES = _rules(
    (r"-\d{4}-\d{2}-\d{2}$", ""),
    (r"-\d{8}$", ""),
    (r"-\d{4}$", ""),
)

LEADERBOARD_SUFFIX_RULES = _rules(
    (r"-\d{4}-\d{2}(-\d{2})?$", ""),
    (r"-preview$", ""),
    (r"-latest$", ""),
    (r"-instruct$", ""),
    (r"-chat$", ""),
    (r"-bf16$", ""),
    (r"-fp8$", ""),
)

EIGHT_DIGIT_RULES = _rules((r"-\d{8}$", ""))
FOUR_DIGIT_RULES = _rules((r"-\d{4}$", ""))

# "gemini-3-flash (thinking-minimal)" -> "gemini-3-flash"
PARENTHETICAL_RULES = _rules((r"\s*\(.*?\)\s*$", ""))

# Tags that qualify a listing rather than name a model size
NON_SIZE_TAGS = frozenset({"free", "extended", "latest"})

# name-variant-version <-> name-version-variant
_VARIANT_THEN_VERSION = re.compile(r"^(.+?)-([a-z]+)-(\d+[.\d]*)$")
_VERSION_THEN_VARIANT = re.compile(r"^(.+?)-(\d+[.\d]*)-([a-z]+)$")


# ============================================================================
# Canonical Forms
# ============================================================================


def _split_segment(model_id: str) -> Tuple[str, str]:
    """Split "a/b/c" into ("a/b/", "c")."""
    head, sep, tail = model_id.rpartition("/")
    return (head + sep, tail)


def normalize(model_id: str) -> str:
    """
    Canonical form of an identifier, provider path preserved.

    Examples:
        "openai/gpt-4o-2024-05-13" -> "openai/gpt-4o"
        "bedrock/us.anthropic.claude-3-5-sonnet-20241022-v2:0" -> "bedrock/claude-3-5-sonnet"
        "meta-llama/llama-3-8b-instruct:free" -> "meta-llama/llama-3-8b"
    """
    path, segment = _split_segment(model_id.lower())
    segment = apply_rules(segment, SEGMENT_PREFIX_RULES)
    segment = apply_rules(segment, NORMALIZE_RULES)
    return path + segment


def bare_model_name(model_id: str) -> str:
    """
    Final path segment with vendor prefixes, version suffixes and local tags removed.

    Examples:
        "openrouter/google/gemma-3-4b-it" -> "gemma-3-4b-it"
        "bedrock/anthropic.claude-3-haiku-20240307-v1:0" -> "claude-3-haiku-20240307"
        "ollama/gemma3:4b" -> "gemma3"
    """
    bare = model_id.split("/")[-1].lower()
    bare = apply_rules(bare, SEGMENT_PREFIX_RULES)
    bare = apply_rules(bare, VERSION_SUFFIX_RULES)
    return apply_rules(bare, LOCAL_TAG_RULES)


def aggressive_normalize(name: str) -> str:
    """Normalized name with tuning/date qualifiers dropped and dots as dashes."""
    return apply_rules(normalize(name), AGGRESSIVE_RULES)


def hyphenate(name: str) -> str:
    """Insert dashes at letter/digit boundaries: "gemma3" -> "gemma-3"."""
    return apply_rules(name.lower(), HYPHENATE_RULES)


def extract_provider(model_id: str) -> str:
    parts = model_id.split("/")
    return parts[0] if len(parts) > 1 else "unknown"


def split_local_tag(model_id: str) -> Tuple[str, Optional[str]]:
    """
    Split a locally-run identifier into (family, size tag).

    "ollama/llama3:8b" -> ("llama3", "8b"); "ollama/mistral:latest" -> ("mistral", None)
    """
    tail = model_id.split("/")[-1].lower()
    family, _, tag = tail.partition(":")
    if not tag or tag in NON_SIZE_TAGS:
        return family, None
    return family, tag


# ============================================================================
# Candidate Keys
# ============================================================================


def _ordered_unique(values: Iterable[str]) -> List[str]:
    seen = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return list(seen)


def catalog_keys(model_id: str) -> List[str]:
    """
    Strict lookup tiers used against the catalog and the pricing table.

    Order: exact, lowercase, normalized, bare name.
    """
    return _ordered_unique(
        [model_id, model_id.lower(), normalize(model_id), bare_model_name(model_id)]
    )


def candidate_keys(model_id: str) -> List[str]:
    """
    Ordered fuzzy-match keys for an identifier, most specific first.

    Order: bare name, its normalized form, the aggressively-stripped form,
    dot/dash separator variants, letter/digit hyphenation, local family:tag
    expansions, date-suffix removal, and version/variant reordering.
    """
    bare = bare_model_name(model_id)
    normalized = normalize(bare)
    candidates = [bare, normalized, aggressive_normalize(bare)]

    for value in (bare, normalized):
        candidates.append(value.replace(".", "-"))
        candidates.append(value.replace("-", "."))

    hyphenated = hyphenate(bare)
    if hyphenated != bare:
        candidates.append(hyphenated)
        candidates.append(aggressive_normalize(hyphenated))

    family, tag = split_local_tag(model_id)
    if tag:
        family_norm = hyphenate(family)
        candidates.append(f"{family_norm}-{tag}")
        candidates.append(f"{family_norm}-{tag}-it")
        candidates.append(f"{family_norm}-{tag}-instruct")

    candidates.append(apply_rules(bare, EIGHT_DIGIT_RULES))
    candidates.append(apply_rules(bare, FOUR_DIGIT_RULES))

    match = _VARIANT_THEN_VERSION.match(bare)
    if match:
        name, variant, version = match.groups()
        candidates.append(f"{name}-{version}-{variant}")
        candidates.append(f"{name}-{version.replace('.', '-')}-{variant}")

    match = _VERSION_THEN_VARIANT.match(bare)
    if match:
        name, version, variant = match.groups()
        candidates.append(f"{name}-{variant}-{version}")
        candidates.append(f"{name}-{variant}-{version.replace('.', '-')}")

    return _ordered_unique(candidates)


def leaderboard_keys(display_name: str) -> List[str]:
    """
    Index keys for a leaderboard display name.

    Examples:
        "gpt-4o-2024-05-13" -> ["gpt-4o-2024-05-13", "gpt-4o", ...]
        "gemini-3-flash (thinking-minimal)" -> [..., "gemini-3-flash"]
    """
    name = display_name.lower().strip()
    dots_to_dashes = name.replace(".", "-")
    return _ordered_unique(
        [
            name,
            apply_rules(name, DATE_SUFFIX_RULES),
            apply_rules(name, LEADERBOARD_SUFFIX_RULES),
            apply_rules(name, PARENTHETICAL_RULES).strip(),
            dots_to_dashes,
            apply_rules(dots_to_dashes, DATE_SUFFIX_RULES),
        ]
    )
