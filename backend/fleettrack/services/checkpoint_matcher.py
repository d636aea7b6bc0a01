"""
Politique de correspondance texte de position → checkpoint canonique.

Fonction pure, sans accès BDD : elle reçoit un texte normalisé et la liste
ordonnée des checkpoints, et renvoie la correspondance avec son niveau :

1. EXACT   : égalité avec le nom canonique
2. ALIAS   : égalité avec un des noms alternatifs
3. PARTIAL : le texte contient un nom/alias (ou l'inverse). Deux passes :
             mots entiers d'abord (MSA ne capte pas MSATA), puis simple
             sous-chaîne si la première ne trouve rien (DSMPORT → DSM).
             Un texte plus court que min_partial_length n'est jamais cherché
             à l'intérieur d'une clé.
             Départage : checkpoint majeur, puis clé la plus longue, puis ordre le plus bas.

Aucune correspondance → None (le camion reste "non résolu").
"""

import re
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

from fleettrack.schemas.checkpoint import CheckpointRef

TIER_EXACT = "EXACT"
TIER_ALIAS = "ALIAS"
TIER_PARTIAL = "PARTIAL"

# Ordre attribué aux positions non résolues : toujours trié après les vrais checkpoints
UNRESOLVED_CHECKPOINT_ORDER = 999999

DEFAULT_MIN_PARTIAL_LENGTH = 3

_NON_ALNUM = re.compile(r"[^0-9A-Z]+")


class CheckpointMatch(NamedTuple):
    checkpoint: CheckpointRef
    tier: str
    matched_length: int


def normalize_location(text: Optional[str]) -> str:
    """Majuscules, ponctuation remplacée par des espaces, espaces compactés."""
    if not text:
        return ""
    return " ".join(_NON_ALNUM.sub(" ", str(text).upper()).split())


def _keys(checkpoint: CheckpointRef) -> Tuple[str, List[str]]:
    name = normalize_location(checkpoint.name)
    aliases = [normalize_location(a) for a in checkpoint.alternative_names]
    return name, [a for a in aliases if a]


def _contains_words(haystack: str, needle: str) -> bool:
    return f" {needle} " in f" {haystack} "


def _tie_break_key(match: CheckpointMatch):
    return (not match.checkpoint.is_major, -match.matched_length, match.checkpoint.sequence_order)


def _best(candidates: Iterable[CheckpointMatch]) -> Optional[CheckpointMatch]:
    ordered = sorted(candidates, key=_tie_break_key)
    return ordered[0] if ordered else None


def _contains(haystack: str, needle: str) -> bool:
    return needle in haystack


def _partial_length(normalized: str, key: str, min_length: int, contains) -> int:
    """Longueur de la sous-chaîne commune si l'un contient l'autre, sinon 0."""
    if contains(normalized, key):
        return len(key)
    if len(normalized) >= min_length and contains(key, normalized):
        return len(normalized)
    return 0


def _partial_matches(indexed, normalized: str, min_length: int, contains) -> List[CheckpointMatch]:
    matches = []
    for cp, name, aliases in indexed:
        length = max(_partial_length(normalized, key, min_length, contains) for key in [name, *aliases])
        if length:
            matches.append(CheckpointMatch(cp, TIER_PARTIAL, length))
    return matches


def match_checkpoint(
    normalized: str,
    checkpoints: Sequence[CheckpointRef],
    min_partial_length: int = DEFAULT_MIN_PARTIAL_LENGTH,
) -> Optional[CheckpointMatch]:
    """Résout un texte déjà normalisé (voir normalize_location)."""
    if not normalized:
        return None

    indexed = [(cp, *_keys(cp)) for cp in checkpoints]

    exact = [
        CheckpointMatch(cp, TIER_EXACT, len(name))
        for cp, name, _ in indexed
        if name == normalized
    ]
    if exact:
        return _best(exact)

    alias = [
        CheckpointMatch(cp, TIER_ALIAS, len(normalized))
        for cp, _, aliases in indexed
        if normalized in aliases
    ]
    if alias:
        return _best(alias)

    whole_words = _partial_matches(indexed, normalized, min_partial_length, _contains_words)
    if whole_words:
        return _best(whole_words)
    return _best(_partial_matches(indexed, normalized, min_partial_length, _contains))
