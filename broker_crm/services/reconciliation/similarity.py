"""Name similarity scoring between contacts and policyholders."""

from typing import Optional

from broker_crm.services.reconciliation.normalizer import name_tokens, normalize_name

EXACT_MATCH_SCORE = 1.0
CONTAINMENT_SCORE = 0.9


def token_overlap_score(tokens_a: list[str], tokens_b: list[str]) -> float:
    """Dice-style overlap of two token lists.

    A token of ``tokens_a`` counts once if any token of ``tokens_b`` equals it.
    Tokens of ``tokens_b`` are not consumed, so repeated tokens on the A side
    can each match the same B token.
    """
    if not tokens_a or not tokens_b:
        return 0.0

    pool = set(tokens_b)
    matching = sum(1 for token in tokens_a if token in pool)
    score = (matching * 2) / (len(tokens_a) + len(tokens_b))
    return min(score, EXACT_MATCH_SCORE)


def calculate_name_similarity(name1: Optional[str], name2: Optional[str]) -> float:
    """Score how likely two free-text names refer to the same person.

    Rules are checked in order and the first one that applies wins:

    1. either name missing or empty -> 0.0
    2. equal after normalization -> 1.0
    3. one normalized name contains the other -> 0.9
    4. token overlap over tokens longer than two characters

    Args:
        name1: First name (e.g. the contact's ``nombre_completo``)
        name2: Second name (e.g. a policy's ``contratante``)

    Returns:
        float: Score in [0.0, 1.0]
    """
    if not name1 or not name2:
        return 0.0

    return similarity_from_normalized(normalize_name(name1), normalize_name(name2))


def similarity_from_normalized(
    norm1: str,
    norm2: str,
    tokens1: Optional[list[str]] = None,
    tokens2: Optional[list[str]] = None,
) -> float:
    """Apply rules 2-4 of ``calculate_name_similarity`` to normalized names.

    Callers that compare one name against many can normalize and tokenize
    once and pass the tokens in.
    """
    if norm1 == norm2:
        return EXACT_MATCH_SCORE

    if norm1 in norm2 or norm2 in norm1:
        return CONTAINMENT_SCORE

    if tokens1 is None:
        tokens1 = name_tokens(norm1)
    if tokens2 is None:
        tokens2 = name_tokens(norm2)
    return token_overlap_score(tokens1, tokens2)
