"""
Holiday catalog for home kitchen posts.

Posts store the holiday display name; the catalog also carries a URL slug
and an icon. Posts with an empty holiday are grouped under `OTHER`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

OTHER = "Other"


@dataclass(frozen=True)
class Holiday:
    name: str
    slug: str
    icon: str

    def to_dict(self) -> dict:
        return {"name": self.name, "slug": self.slug, "icon": self.icon}


HOLIDAYS: tuple[Holiday, ...] = (
    Holiday("New Year", "new-year", "🎆"),
    Holiday("Valentine's", "valentines", "💝"),
    Holiday("Lunar New Year", "lunar-new-year", "🧧"),
    Holiday("Easter Day", "easter", "🐰"),
    Holiday("Dragon Boat", "dragon-boat", "🐉"),
    Holiday("Mother's/Father's Day", "parents-day", "👨‍👩‍👧‍👦"),
    Holiday("Independence Day", "independence-day", "🎆"),
    Holiday("Birthday", "birthday", "🎂"),
    Holiday("Mid Autumn", "mid-autumn", "🥮"),
    Holiday("Halloween", "halloween", "🎃"),
    Holiday("Thanksgiving", "thanksgiving", "🦃"),
    Holiday("Christmas Day", "christmas", "🎄"),
)

_BY_SLUG = {h.slug: h for h in HOLIDAYS}


def holiday_by_slug(slug: str) -> Optional[Holiday]:
    return _BY_SLUG.get((slug or "").strip().lower())


def resolve_holiday_name(value: str) -> str:
    """Map a catalog slug to its display name; anything else is returned as-is."""
    holiday = holiday_by_slug(value)
    return holiday.name if holiday else (value or "").strip()


__all__ = ["Holiday", "HOLIDAYS", "OTHER", "holiday_by_slug", "resolve_holiday_name"]
