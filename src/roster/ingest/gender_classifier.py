"""Gender classifier: maps free-text tokens onto the two Gender categories."""

from __future__ import annotations

from roster.core.exceptions import UnrecognizedGenderError
from roster.models.employee import Gender


def classify_gender(token: str | None) -> Gender:
    """Return the category whose canonical name or synonym matches ``token``.

    Matching ignores case and surrounding whitespace. Blank or unknown input
    raises UnrecognizedGenderError; what to substitute is the caller's call.
    """
    if token is None:
        raise UnrecognizedGenderError(token)

    folded = token.strip().casefold()
    for gender in Gender:
        if folded in gender.synonyms:
            return gender
    raise UnrecognizedGenderError(token)
