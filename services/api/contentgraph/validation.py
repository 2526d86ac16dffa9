"""Input normalisation shared by the managers."""
from typing import Optional

from contentgraph.errors import ValidationError


def clean_text(value: Optional[str], field: str, max_length: int, required: bool = True) -> str:
    """Strip `value`; reject it when blank (if required) or longer than max_length."""
    text = (value or "").strip()
    if required and not text:
        raise ValidationError(f"{field} must not be empty")
    if len(text) > max_length:
        raise ValidationError(f"{field} is longer than {max_length} characters")
    return text
