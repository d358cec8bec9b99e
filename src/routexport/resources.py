"""
Localized strings for field names, descriptions and resolver texts.

The provider is injected into the catalog and the resolver instead of being
looked up globally, so tests and alternative locales can supply their own
mapping.
"""

import logging
from collections.abc import Mapping
from importlib import resources
from typing import Optional

import yaml

from .domain.enums import Unit

logger = logging.getLogger(__name__)

BUNDLED_STRINGS = "strings.yml"


class ResourceProvider:
    """Key-to-text lookup; unknown keys come back verbatim."""

    def __init__(self, strings: Optional[Mapping[str, str]] = None):
        self._strings = dict(strings) if strings is not None else self._load_bundled()

    @staticmethod
    def _load_bundled() -> dict[str, str]:
        text = resources.files("routexport.data").joinpath(BUNDLED_STRINGS).read_text(encoding="utf-8")
        strings = yaml.safe_load(text) or {}
        logger.debug(f"Loaded {len(strings)} bundled resource strings")
        return {str(key): "" if value is None else str(value) for key, value in strings.items()}

    def get(self, key: Optional[str]) -> str:
        """
        Look up a resource string.

        Args:
            key: Resource key; None or empty gives an empty string

        Returns:
            The localized text, or the key itself when it has no resource
        """
        if not key:
            return ""
        return self._strings.get(key, key)

    def unit_title(self, unit: Unit) -> str:
        """Plural display title of a capacity unit, e.g. ``pounds``."""
        return self.get(f"UnitTitle{Unit(unit).value}")

    def __len__(self) -> int:
        return len(self._strings)
