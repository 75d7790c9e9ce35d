"""Shared registry of effort categories (ordered keys plus display metadata)."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

LEGACY_CATEGORIES: tuple[str, ...] = ("functional", "technical", "governance")

DEFAULT_CATEGORY_COLORS: dict[str, str] = {
    "functional": "#93C5FD",
    "technical": "#86EFAC",
    "governance": "#D8B4FE",
}

DEFAULT_CATEGORY_LABELS: dict[str, str] = {
    "functional": "Functional",
    "technical": "Technical",
    "governance": "Governance",
}

CUSTOM_PALETTE: tuple[str, ...] = (
    "#FCA5A5",
    "#FCD34D",
    "#6EE7B7",
    "#67E8F9",
    "#F9A8D4",
    "#FDBA74",
)

_INVALID_KEY_CHARS = re.compile(r"[^a-z0-9\s_-]")
_KEY_SEPARATORS = re.compile(r"[\s-]+")


def normalize_category_key(name: str) -> str:
    """Turn a user-entered category name into a machine key."""

    key = _INVALID_KEY_CHARS.sub("", (name or "").strip().lower())
    return _KEY_SEPARATORS.sub("_", key).strip("_")


def default_label(key: str) -> str:
    if key in DEFAULT_CATEGORY_LABELS:
        return DEFAULT_CATEGORY_LABELS[key]
    text = key.replace("_", " ")
    return text[:1].upper() + text[1:]


@dataclass(frozen=True, slots=True)
class CategoryStyle:
    key: str
    label: str
    color: str


@dataclass(frozen=True)
class CategoryRegistry:
    """Ordered, de-duplicated category keys shared by table, aggregation and legend."""

    keys: tuple[str, ...]
    colors: Mapping[str, str] = field(default_factory=dict)
    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", tuple(dict.fromkeys(self.keys)))

    @classmethod
    def legacy(cls) -> CategoryRegistry:
        return cls(LEGACY_CATEGORIES)

    @classmethod
    def from_keys(cls, keys: Iterable[str], *, order: Iterable[str] | None = None) -> CategoryRegistry:
        """Build a registry, falling back to the legacy keys when ``keys`` is empty."""

        collected = list(dict.fromkeys(key for key in keys if key))
        if not collected:
            return cls.legacy()
        if order:
            ranked = {key: index for index, key in enumerate(order)}
            collected.sort(key=lambda key: ranked.get(key, len(ranked)))
        return cls(tuple(collected))

    def __contains__(self, key: object) -> bool:
        return key in self.keys

    def __iter__(self):
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def with_key(self, key: str) -> CategoryRegistry:
        if key in self.keys:
            return self
        return CategoryRegistry(self.keys + (key,), self.colors, self.labels)

    def without_key(self, key: str) -> CategoryRegistry:
        return CategoryRegistry(tuple(k for k in self.keys if k != key), self.colors, self.labels)

    def with_colors(self, colors: Mapping[str, str]) -> CategoryRegistry:
        return CategoryRegistry(self.keys, {**self.colors, **colors}, self.labels)

    def with_labels(self, labels: Mapping[str, str]) -> CategoryRegistry:
        return CategoryRegistry(self.keys, self.colors, {**self.labels, **labels})

    def styles(self) -> dict[str, CategoryStyle]:
        """Label and color per key; custom keys cycle through the palette."""

        styles: dict[str, CategoryStyle] = {}
        custom_index = 0
        for key in self.keys:
            if key in DEFAULT_CATEGORY_COLORS:
                color = DEFAULT_CATEGORY_COLORS[key]
            else:
                color = CUSTOM_PALETTE[custom_index % len(CUSTOM_PALETTE)]
                custom_index += 1
            styles[key] = CategoryStyle(
                key=key,
                label=self.labels.get(key) or default_label(key),
                color=self.colors.get(key) or color,
            )
        return styles

    def label(self, key: str) -> str:
        style = self.styles().get(key)
        return style.label if style else default_label(key)

    def color(self, key: str) -> str:
        style = self.styles().get(key)
        return style.color if style else CUSTOM_PALETTE[0]
