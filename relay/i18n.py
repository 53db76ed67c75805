"""
Locale string catalogues.

One JSON file per locale under relay/locales/ (en_US.json, de_DE.json, ...).
Catalogues are parsed once at startup; a malformed file stops the process.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"
DEFAULT_LOCALE = "en_US"

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class CatalogueError(Exception):
    """A locale catalogue could not be loaded."""
    pass


class Translator:
    """
    Nested-key lookup with {{param}} substitution.

    Unknown locales fall back to the default locale, unknown keys fall back
    to the default locale's string and finally to the key itself.
    """

    def __init__(self, catalogues: dict[str, dict[str, Any]], default_locale: str = DEFAULT_LOCALE):
        if default_locale not in catalogues:
            raise CatalogueError(f"No catalogue for default locale {default_locale}")
        self.catalogues = catalogues
        self.default_locale = default_locale

    @classmethod
    def from_directory(cls, directory: Path = LOCALES_DIR, default_locale: str = DEFAULT_LOCALE) -> "Translator":
        catalogues = {}
        for path in sorted(Path(directory).glob("*.json")):
            try:
                catalogues[path.stem] = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise CatalogueError(f"Formatting issue detected in {path.name}: {e}") from e
        logger.info(f"Loaded locales: {', '.join(catalogues) or 'none'}")
        return cls(catalogues, default_locale)

    @property
    def locales(self) -> list[str]:
        return sorted(self.catalogues)

    def safe_locale(self, locale: Optional[str]) -> str:
        """Return locale if a catalogue exists for it, else the default."""
        if locale in self.catalogues:
            return locale
        return self.default_locale

    def lookup(self, key: str, locale: Optional[str] = None) -> Any:
        """Raw value for a dotted key, or None."""
        for candidate in (self.safe_locale(locale), self.default_locale):
            node: Any = self.catalogues[candidate]
            for part in key.split("."):
                if not isinstance(node, dict) or part not in node:
                    node = None
                    break
                node = node[part]
            if node is not None:
                return node
        return None

    def translate(self, key: str, locale: Optional[str] = None, **params: Any) -> str:
        value = self.lookup(key, locale)
        if not isinstance(value, str):
            logger.warning(f"Missing locale string: {key}", extra={"locale": locale})
            return key

        def replace(match):
            name = match.group(1)
            return str(params.get(name, ""))

        return _PLACEHOLDER.sub(replace, value)
