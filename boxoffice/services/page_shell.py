"""
Page Shell Service - branding header/footer borrowed from the main site.

A background task refreshes the snapshot on an interval. Request handlers
only ever read the last good snapshot, which starts out empty, so pages
render whether or not the main site is reachable.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional

import httpx

from boxoffice.config import settings

logger = logging.getLogger(__name__)

BODY_CLASS_RE = re.compile(r'<body[^>]*class="([^"]*)"', re.IGNORECASE)
HEAD_RE = re.compile(r"<head[^>]*>([\s\S]*?)</head>", re.IGNORECASE)
STYLESHEET_RE = re.compile(r"""<link[^>]+rel=['"]stylesheet['"][^>]*>""", re.IGNORECASE)
STYLE_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE)
HEADER_RE = re.compile(r'<header data-elementor-type="header"[\s\S]*?</header>', re.IGNORECASE)
FOOTER_RE = re.compile(r'<footer data-elementor-type="footer"[\s\S]*?</footer>', re.IGNORECASE)


@dataclass(frozen=True)
class PageShell:
    """Markup wrapped around every public page."""

    head: str = ""
    header: str = ""
    footer: str = ""
    body_class: str = ""
    ready: bool = False


EMPTY_SHELL = PageShell()


def parse_page_shell(html: str) -> PageShell:
    """Extract stylesheets, body classes, header and footer from a page."""
    body_match = BODY_CLASS_RE.search(html)
    head_match = HEAD_RE.search(html)
    head_content = head_match.group(1) if head_match else ""

    stylesheets = STYLESHEET_RE.findall(head_content)
    styles = STYLE_RE.findall(head_content)

    header_match = HEADER_RE.search(html)
    footer_match = FOOTER_RE.search(html)

    return PageShell(
        head="\n".join(stylesheets) + "\n" + "\n".join(styles),
        header=header_match.group(0) if header_match else "",
        footer=footer_match.group(0) if footer_match else "",
        body_class=body_match.group(1) if body_match else "",
        ready=True,
    )


class PageShellProvider:
    """Holds the current page shell snapshot and knows how to refresh it."""

    def __init__(
        self,
        url: Optional[str] = None,
        refresh_seconds: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.url = url if url is not None else settings.page_shell_url
        self.refresh_seconds = (
            refresh_seconds if refresh_seconds is not None else settings.page_shell_refresh_seconds
        )
        self.timeout = timeout if timeout is not None else settings.page_shell_timeout_seconds
        self._snapshot = EMPTY_SHELL

    @property
    def snapshot(self) -> PageShell:
        return self._snapshot

    async def refresh(self) -> bool:
        """Fetch the main site once. Keeps the previous snapshot on failure."""
        if not self.url:
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(self.url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch page shell from {self.url}: {e}")
            return False

        self._snapshot = parse_page_shell(response.text)
        logger.info("Page shell loaded successfully")
        return True

    async def run_forever(self) -> None:
        """Refresh now and then every refresh_seconds until cancelled."""
        if not self.url:
            logger.info("PAGE_SHELL_URL not configured, using plain page shell")
            return

        while True:
            try:
                await self.refresh()
            except Exception as e:
                logger.error(f"Page shell refresh crashed: {e}", exc_info=True)
            await asyncio.sleep(self.refresh_seconds)


page_shell_provider = PageShellProvider()


def get_page_shell() -> PageShell:
    """Dependency returning the current snapshot without waiting on a refresh."""
    return page_shell_provider.snapshot
