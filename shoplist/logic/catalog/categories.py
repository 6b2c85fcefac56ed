"""Category labels are free text whose first token is normally an emoji ("🥛 Dairy")."""
from typing import Optional

from shoplist.utilities.constants import BUILT_IN_CATEGORIES, DEFAULT_CATEGORY_EMOJI


def _is_emoji_token(token: str) -> bool:
    return bool(token) and all(not ch.isalnum() and ord(ch) > 0x2000 for ch in token)


def category_emoji(label: Optional[str]) -> str:
    '''Leading emoji of a category label, or the generic box when there is none.'''
    if not label or not label.strip():
        return DEFAULT_CATEGORY_EMOJI
    token = label.strip().split()[0]
    return token if _is_emoji_token(token) else DEFAULT_CATEGORY_EMOJI


def list_categories():
    return [{"label": label, "emoji": category_emoji(label)} for label in BUILT_IN_CATEGORIES]
