from typing import List, Optional, Tuple

from quizbank.core.errors import ValidationError
from quizbank.services.daypo_import import extract_edit_numbering


def normalize_orig_no(value) -> Optional[int]:
    """Source numbers are 1..N; blank, non-numeric and non-positive values become None."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    try:
        n = int(s)
    except ValueError:
        return None
    return n if n > 0 else None


def normalize_prompt(prompt: Optional[str]) -> str:
    return (prompt or "").replace("\r\n", "\n").strip()


def split_edit_prompt(raw_prompt: Optional[str], orig_no=None) -> Tuple[Optional[int], str]:
    """Resolves the number and text of an edited prompt.

    An explicit ``orig_no`` wins; otherwise a leading ``N.``/``N)`` is taken off
    the prompt text.
    """
    if orig_no is not None and str(orig_no).strip():
        return normalize_orig_no(orig_no), normalize_prompt(raw_prompt)
    n, clean = extract_edit_numbering(normalize_prompt(raw_prompt))
    return normalize_orig_no(n), clean


def validate_question_fields(prompt: Optional[str], options: List[str], correct_index) -> Tuple[str, List[str], int]:
    clean = normalize_prompt(prompt)
    if not clean:
        raise ValidationError("prompt is required")

    submitted = [str(o or "").strip() for o in (options or [])]
    opts = [o for o in submitted if o]
    if len(opts) < 2:
        raise ValidationError("options must have at least 2 non-empty entries")

    # correct_index points into the submitted list, blanks included
    try:
        ci = int(correct_index)
    except (TypeError, ValueError):
        raise ValidationError("correct_index must be an integer")
    if ci < 0 or ci >= len(submitted):
        raise ValidationError(f"correct_index must be between 0 and {len(submitted) - 1}")
    if not submitted[ci]:
        raise ValidationError(f"correct_index {ci} points at an empty option")

    return clean, opts, sum(1 for o in submitted[:ci] if o)
