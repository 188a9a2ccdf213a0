"""Subscription categories.

Categories are an open string tag. The list below is the recommended set
offered when adding a subscription; anything else is accepted as-is.
"""

from __future__ import annotations

DEFAULT_CATEGORY = "other"

SUBSCRIPTION_CATEGORIES = [
    "streaming", "entertainment", "software", "productivity", "design",
    "utilities", "health", "wellness", "education", "other",
]

_CATEGORY_ICONS = {
    "streaming": "📺",
    "entertainment": "🎵",
    "software": "💻",
    "productivity": "🗂",
    "design": "🎨",
    "utilities": "🔌",
    "health": "💊",
    "wellness": "🏋",
    "education": "📚",
}

_FALLBACK_ICON = "📦"


def normalize_category(value: str | None) -> str:
    """Trim a category tag; blank becomes the default category."""
    cleaned = (value or "").strip()
    return cleaned or DEFAULT_CATEGORY


def category_icon(category: str) -> str:
    """Icon for a category, case-insensitive, with a generic fallback."""
    return _CATEGORY_ICONS.get(category.strip().lower(), _FALLBACK_ICON)
