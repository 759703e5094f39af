"""
Template store for panel markup.

Templates are HTML fragments bundled with the package under
``phisher_panel/markup/<name>.html``. They contain ``{{key}}`` placeholders
that are substituted in a single, non-recursive pass. Bodies are cached by
name for the lifetime of the store.
"""

import asyncio
import html
import re
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag

from .audit_logger import AuditLogger
from .exceptions import TemplateLoadError, TemplateStructureError


PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")
TEMPLATE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

HTML_PARSER = "html.parser"


def interpolate(template: str, data: Mapping[str, Any]) -> str:
    """
    Replace ``{{key}}`` tokens whose key is present in ``data``.

    Values are stringified and HTML-escaped. Tokens without a matching key
    are left verbatim, and substituted values are never scanned again.
    """
    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in data:
            return match.group(0)
        value = data[key]
        return html.escape("" if value is None else str(value), quote=True)

    return PLACEHOLDER_PATTERN.sub(substitute, template)


def parse_fragment(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, HTML_PARSER)


class TemplateStore:
    """
    Loads, caches and renders named templates.

    By default templates are read from the package resources. A directory
    can be given instead, which is how tests point the store at fixtures.
    """

    def __init__(
        self,
        directory: Optional[Union[str, Path]] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._directory = Path(directory) if directory is not None else None
        self._logger = logger
        self._cache: dict[str, str] = {}

    def _resource(self, name: str):
        if self._directory is not None:
            return self._directory / f"{name}.html"
        return resources.files("phisher_panel").joinpath("markup", f"{name}.html")

    def _read(self, name: str) -> str:
        resource = self._resource(name)
        try:
            return resource.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise TemplateLoadError(
                code="malformed",
                message=f"Template '{name}' is not valid UTF-8",
                details={"template": name, "error_message": str(e)},
            )
        except OSError as e:
            raise TemplateLoadError(
                code="not_found",
                message=f"Template '{name}' could not be read",
                details={"template": name, "error_message": str(e)},
            )

    async def load(self, name: str) -> str:
        """
        Return the body of template ``name``, reading it on first use.

        Raises:
            TemplateLoadError: If the name is invalid or the resource is
                missing, unreadable or not UTF-8
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        if not TEMPLATE_NAME_PATTERN.match(name or ""):
            raise TemplateLoadError(
                code="invalid_name",
                message=f"Invalid template name: {name!r}",
                details={"template": name},
            )

        body = await asyncio.to_thread(self._read, name)
        # A concurrent load may have filled the slot; the first body wins
        body = self._cache.setdefault(name, body)
        if self._logger:
            self._logger.debug("TemplateStore", f"Loaded template '{name}'")
        return body

    async def render(self, name: str, data: Optional[Mapping[str, Any]] = None) -> str:
        template = await self.load(name)
        return interpolate(template, data or {})

    async def materialize(
        self,
        name: str,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Tag:
        """
        Render ``name`` and parse it into its single root element.

        Raises:
            TemplateLoadError: If the template cannot be loaded
            TemplateStructureError: If the markup has zero or several
                top-level elements, or stray top-level text
        """
        markup = await self.render(name, data)
        fragment = parse_fragment(markup)

        elements = []
        for node in fragment.contents:
            if isinstance(node, Tag):
                elements.append(node)
            elif type(node) is NavigableString and node.strip():
                raise TemplateStructureError(
                    code="stray_text",
                    message=f"Template '{name}' has text outside its root element",
                    details={"template": name},
                )

        if len(elements) != 1:
            raise TemplateStructureError(
                code="root_count",
                message=f"Template '{name}' must have exactly one root element, found {len(elements)}",
                details={"template": name, "root_count": len(elements)},
            )
        return elements[0].extract()

    async def replace_into(
        self,
        container: Tag,
        name: str,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Tag:
        """Render ``name`` and replace the full content of ``container`` with it."""
        markup = await self.render(name, data)
        replace_content(container, markup)
        return container

    def clear_cache(self) -> None:
        self._cache.clear()

    def is_cached(self, name: str) -> bool:
        return name in self._cache


def replace_content(container: Tag, markup: str) -> None:
    """Replace every child of ``container`` with the nodes parsed from ``markup``."""
    fragment = parse_fragment(markup)
    container.clear()
    for node in list(fragment.contents):
        container.append(node.extract())
