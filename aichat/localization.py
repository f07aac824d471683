"""
Localized user-facing text backed by YAML catalogs.

Catalogs live in ``aichat/locales/<language>.yaml`` as nested mappings and are
looked up with dotted keys such as ``Errors.AIAPIError``. A key missing from
the active language falls back to the fallback language and finally to the
key itself.
"""

from __future__ import annotations

import os
from typing import Any

import structlog
import yaml

from .config import SettingsSource
from .exceptions import DEFAULT_ERROR_CODE

logger = structlog.get_logger(__name__)

LOCALES_DIR = os.path.join(os.path.dirname(__file__), "locales")


class Translator:
    """Looks up message templates in the active language."""

    def __init__(
        self, locales_dir: str | None = None, fallback_language: str = "en"
    ) -> None:
        self.locales_dir = locales_dir or LOCALES_DIR
        self.fallback_language = fallback_language
        self._catalogs = self._load_catalogs()
        if fallback_language not in self._catalogs:
            raise ValueError(
                f"Fallback language '{fallback_language}' has no catalog "
                f"in {self.locales_dir}"
            )
        self._language = fallback_language

    def _load_catalogs(self) -> dict[str, dict[str, Any]]:
        catalogs: dict[str, dict[str, Any]] = {}
        for filename in sorted(os.listdir(self.locales_dir)):
            language, ext = os.path.splitext(filename)
            if ext not in (".yaml", ".yml"):
                continue
            with open(os.path.join(self.locales_dir, filename), encoding="utf-8") as file:
                catalog = yaml.safe_load(file) or {}
            if not isinstance(catalog, dict):
                raise ValueError(
                    f"Locale file {filename} must be a YAML dict, got {type(catalog)}"
                )
            catalogs[language] = catalog
        return catalogs

    @property
    def language(self) -> str:
        return self._language

    @property
    def languages(self) -> list[str]:
        return sorted(self._catalogs)

    def change_language(self, code: str) -> None:
        """Switch the active language; unknown codes use the fallback."""
        if code not in self._catalogs:
            if code:
                logger.debug(
                    "Unknown language, using fallback",
                    language=code,
                    fallback=self.fallback_language,
                )
            code = self.fallback_language
        self._language = code

    def t(self, key: str, **params: Any) -> str:
        """Translate a dotted key, formatting ``{name}`` placeholders."""
        template = self._lookup(self._language, key)
        if template is None:
            template = self._lookup(self.fallback_language, key)
        if template is None:
            return key
        return template.format(**params) if params else template

    def _lookup(self, language: str, key: str) -> str | None:
        node: Any = self._catalogs.get(language, {})
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None


def handle_api_error(
    error_code: str | None, store: SettingsSource, translator: Translator
) -> str:
    """Map a backend error code to text in the user's selected language."""
    translator.change_language(store.get_state().select_language)
    return translator.t(f"Errors.{error_code or DEFAULT_ERROR_CODE}")
