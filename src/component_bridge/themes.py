"""
Theme activation: swaps the custom stylesheet set pushed by the host.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

logger = logging.getLogger(__name__)

CUSTOM_THEME_CLASS = "custom-theme"


@dataclass
class Stylesheet:
    href: str
    type: str = "text/css"
    rel: str = "stylesheet"
    media: str = "screen,print"
    class_name: str = CUSTOM_THEME_CLASS


class StylesheetSet(Protocol):
    def add(self, stylesheet: Stylesheet) -> None: ...

    def remove_class(self, class_name: str) -> list[Stylesheet]: ...


class InMemoryStylesheetSet:
    """Ordered stylesheet list, for hosts that render from state and for tests."""

    def __init__(self, stylesheets: Optional[Sequence[Stylesheet]] = None):
        self.stylesheets: list[Stylesheet] = list(stylesheets or [])

    def add(self, stylesheet: Stylesheet) -> None:
        self.stylesheets.append(stylesheet)

    def remove_class(self, class_name: str) -> list[Stylesheet]:
        removed = [s for s in self.stylesheets if s.class_name == class_name]
        self.stylesheets = [s for s in self.stylesheets if s.class_name != class_name]
        return removed

    def hrefs(self, class_name: str = CUSTOM_THEME_CLASS) -> list[str]:
        return [s.href for s in self.stylesheets if s.class_name == class_name]


class ThemeManager:
    def __init__(self, stylesheets: StylesheetSet, verbose: bool = False):
        self._stylesheets = stylesheets
        self._verbose = verbose

    def activate_themes(self, urls: Optional[Sequence[Optional[str]]]) -> None:
        """Replace every custom stylesheet with one per non-empty url, in order."""
        self.deactivate_all_custom_themes()
        if self._verbose:
            logger.debug("Activating themes: %s", urls)
        if not urls:
            return
        for url in urls:
            if not url:
                continue
            self._stylesheets.add(Stylesheet(href=url))

    def deactivate_all_custom_themes(self) -> None:
        self._stylesheets.remove_class(CUSTOM_THEME_CLASS)
