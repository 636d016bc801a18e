"""Flat ``##key##`` placeholder substitution for text inputs."""

from __future__ import annotations

import re
from typing import Mapping

# Keys are ASCII letters, digits, '-' and '_' between double hashes
PLACEHOLDER_PATTERN = re.compile(r"##([A-Za-z0-9_-]+)##")


class TemplateProcessor:
    """Replaces placeholders such as ``##name##`` with their mapped values.

    Substitution is a single pass over the input: text coming from a
    replacement value is never scanned again, and placeholders without a
    mapping are left exactly as written.
    """

    def __init__(self, pattern: re.Pattern[str] = PLACEHOLDER_PATTERN) -> None:
        self.pattern = pattern

    def render(self, text: str, values: Mapping[str, str]) -> str:
        """Substitute every mapped placeholder in ``text``.

        Args:
            text: Template text
            values: Placeholder key to replacement value

        Returns:
            The rendered text
        """
        if not values:
            return text

        def substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            if key in values:
                return str(values[key])
            return match.group(0)

        return self.pattern.sub(substitute, text)

    def find_placeholders(self, text: str) -> list[str]:
        """Return distinct placeholder keys in order of first occurrence."""
        keys: list[str] = []
        for match in self.pattern.finditer(text):
            key = match.group(1)
            if key not in keys:
                keys.append(key)
        return keys


_processor = TemplateProcessor()


def render(text: str, values: Mapping[str, str]) -> str:
    """Render ``text`` with the default ``##key##`` processor."""
    return _processor.render(text, values)


def find_placeholders(text: str) -> list[str]:
    return _processor.find_placeholders(text)
