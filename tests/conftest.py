"""
Shared fixtures: HTML builders for wiki pages and a fake client without network.
"""
from typing import Dict, List, Union

import pytest

SITE = "https://arknights.wiki.gg"


def operator_page(name: str, class_name: str = "", release: str = "", rarity: str = "") -> str:
    rows = []
    if rarity:
        rows.append(f'<div class="pi-item pi-data"><h3 class="pi-data-label">Rarity</h3><div class="pi-data-value">{rarity}</div></div>')
    if class_name:
        rows.append(f'<div class="pi-item pi-data"><h3 class="pi-data-label">Class</h3><div class="pi-data-value">{class_name}</div></div>')
    if release:
        rows.append(f'<div class="pi-item pi-data"><h3 class="pi-data-label">Released</h3><div class="pi-data-value">{release}</div></div>')
    return (
        "<html><head></head><body>"
        f'<h1 id="firstHeading">{name}</h1>'
        f'<aside class="portable-infobox">{"".join(rows)}</aside>'
        "</body></html>"
    )


def listing_page(*anchors: str) -> str:
    return (
        "<html><body>"
        '<div id="mw-navigation"><a href="/wiki/Main_Page">Main Page</a></div>'
        f'<div id="mw-content-text"><div class="mw-parser-output">{"".join(anchors)}</div></div>'
        "</body></html>"
    )


class FakeClient:
    """Serves canned HTML by URL; exceptions in the mapping are raised instead."""

    def __init__(self, pages: Dict[str, Union[str, Exception]]) -> None:
        self.pages = pages
        self.requested: List[str] = []

    def get_html(self, url: str) -> str:
        self.requested.append(url)
        page = self.pages.get(url)
        if page is None:
            raise KeyError(f"no canned page for {url}")
        if isinstance(page, Exception):
            raise page
        return page


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
