from typing import Iterable, Optional

from rapidfuzz import fuzz, process

from .constants import SUGGESTION_THRESHOLD


def closest_name(name: str, candidates: Iterable[str], th: int = SUGGESTION_THRESHOLD) -> Optional[str]:
    """Closest match for `name` among `candidates`, or None if nothing is close enough.

    Used to hint at typos when a column is missing (e.g. 'email' -> 'email_id').
    """
    choices = list(candidates)
    if not choices:
        return None
    best = process.extractOne(
        name.lower(), choices,
        scorer=fuzz.WRatio,
        processor=str.lower,
        score_cutoff=th,
    )
    return best[0] if best else None
