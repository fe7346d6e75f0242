#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Arknights Wiki (wiki.gg) – HTML extraction helpers
- Reads operator links from the rarity listing pages (Operator/1-star ... Operator/6-star)
- Reads one operator "profile" from the Portable Infobox of an operator page
- Everything here works on HTML strings / parsed soups only (no network)

Infobox markup differs a lot between pages, so every field goes through a cascade
of strategies (portable-infobox pairs, sibling pairs, classic th/td tables, loose
label text). Fields that cannot be recovered stay "" instead of failing the page.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Set, Tuple, Union
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup, Tag

# -----------------------------
# CONFIG (site conventions)
# -----------------------------

SITE_ROOT = "https://arknights.wiki.gg"
WIKI_BASE = f"{SITE_ROOT}/wiki/"

# Operator links on listing pages look like /wiki/Operator/<...> or /wiki/<Name>
OPERATOR_PATH_PREFIX = "/wiki/Operator/"
WIKI_PATH_PREFIX = "/wiki/"

# /wiki/Operator and /wiki/Operators are index pages, not operators
LISTING_INDEX_RE = re.compile(r"/Operators?$")
LINK_TEXT_LETTER_RE = re.compile(r"[A-Za-zÀ-ɏ]")
LINK_TEXT_MAX_LEN = 40

WS_RE = re.compile(r"\s+")
ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
YEAR_RE = re.compile(r"\d{4}")
INT_RE = re.compile(r"\d+")
STAR_GLYPH = "★"

RARITY_LABELS = ("Rarity", "Rarity/Stars", "Star")
GENDER_LABELS = ("Gender", "Sex")
CLASS_LABELS = ("Class", "Role")
ARCHETYPE_LABELS = ("Archetype", "Type")
FACTION_LABELS = ("Faction", "Affiliation")
RACE_LABELS = ("Race",)
REGION_LABELS = ("Region", "Origin")
RELEASE_LABELS = ("Released", "Release", "Release Date", "Recruitment")

Rarity = Union[int, str]


def tidy(s: Optional[str]) -> str:
    if not s:
        return ""
    return WS_RE.sub(" ", s).strip()


def _text(el: Optional[Tag]) -> str:
    if el is None:
        return ""
    return el.get_text(" ", strip=True)


def _same_label(text: str, label: str) -> bool:
    return text.strip().lower() == label.strip().lower()


# -----------------------------
# OPERATOR RECORD
# -----------------------------


@dataclass
class OperatorRecord:
    name: str
    source: str
    gender: str = ""
    rarity: Rarity = ""
    class_name: str = ""
    archetype: str = ""
    faction: str = ""
    race: str = ""
    region: str = ""
    date_global: str = ""
    event_name: str = ""
    portrait: str = ""
    full_image: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "gender": self.gender,
            "rarity": self.rarity,
            "class": self.class_name,
            "archetype": self.archetype,
            "faction": self.faction,
            "race": self.race,
            "region": self.region,
            "release": {"date_global": self.date_global, "event_name": self.event_name},
            "image": {"portrait": self.portrait, "full": self.full_image},
            "source": self.source,
        }


# -----------------------------
# FIELD EXTRACTOR
# -----------------------------


def _from_pi_data(soup: BeautifulSoup, label: str) -> str:
    # <div class="pi-data"><h3 class="pi-data-label">Class</h3><div class="pi-data-value">Guard</div></div>
    for item in soup.select(".pi-data"):
        if _same_label(_text(item.select_one(".pi-data-label")), label):
            return _text(item.select_one(".pi-data-value"))
    return ""


def _from_pi_label_sibling(soup: BeautifulSoup, label: str) -> str:
    # label and value as plain siblings, without a .pi-data wrapper
    for label_el in soup.select(".pi-data-label"):
        if not _same_label(_text(label_el), label):
            continue
        sib = label_el.find_next_sibling()
        if sib is not None and "pi-data-value" in (sib.get("class") or []):
            return _text(sib)
        return ""
    return ""


def _from_table_header(soup: BeautifulSoup, label: str) -> str:
    needle = label.lower()
    for th in soup.find_all("th"):
        if needle not in _text(th).lower():
            continue
        td = th.find_next_sibling()
        if td is not None and td.name == "td":
            return _text(td)
        return ""
    return ""


def _from_loose_label(soup: BeautifulSoup, label: str) -> str:
    for el in soup.find_all(True):
        if el.find(True) is not None:
            continue
        if not _same_label(el.get_text(), label):
            continue
        return _text(el.find_next_sibling())
    return ""


FieldStrategy = Callable[[BeautifulSoup, str], str]

FIELD_STRATEGIES: Tuple[FieldStrategy, ...] = (
    _from_pi_data,
    _from_pi_label_sibling,
    _from_table_header,
    _from_loose_label,
)


def extract_field(
    soup: BeautifulSoup,
    label: str,
    strategies: Sequence[FieldStrategy] = FIELD_STRATEGIES,
) -> str:
    """
    Best available text for an infobox label, "" when nothing matches.
    Strategies run in order and the first non-empty value wins.
    """
    for strategy in strategies:
        value = strategy(soup, label)
        if value:
            return value
    return ""


def extract_first(soup: BeautifulSoup, labels: Sequence[str]) -> str:
    for label in labels:
        value = extract_field(soup, label)
        if value:
            return value
    return ""


# -----------------------------
# VALUE PARSING
# -----------------------------


def absolute_image_url(src: Optional[str]) -> str:
    """
    //static.wiki.gg/x.png -> https://static.wiki.gg/x.png
    /images/x.png          -> https://arknights.wiki.gg/images/x.png
    """
    src = (src or "").strip()
    if src.startswith("//"):
        return "https:" + src
    if src.startswith("/"):
        return SITE_ROOT + src
    return src


def parse_rarity(raw: str) -> Rarity:
    stars = (raw or "").count(STAR_GLYPH)
    if stars:
        return stars
    m = INT_RE.search(raw or "")
    if m:
        return int(m.group(0)) or ""
    return ""


def parse_release(raw: str) -> Tuple[str, str]:
    """
    Returns (date_global, event_name).

    An ISO date (yyyy-mm-dd) is cut out of the event text; a bare year is only
    reported as the date and the event keeps the full text.
    """
    if not raw:
        return "", ""

    iso = ISO_DATE_RE.search(raw)
    if iso:
        date_global = iso.group(0)
        event_name = tidy(raw.replace(date_global, "", 1))
    else:
        year = YEAR_RE.search(raw)
        date_global = year.group(0) if year else ""
        event_name = tidy(raw)

    if not event_name:
        event_name = raw
    return tidy(date_global), tidy(event_name)


# -----------------------------
# PAGE PARSER
# -----------------------------


def _portrait_src(soup: BeautifulSoup) -> str:
    img = soup.select_one(".pi-image .image img") or soup.select_one(".pi-image img")
    if img is None:
        return ""
    return img.get("data-src") or img.get("src") or ""


def _og_image(soup: BeautifulSoup) -> str:
    meta = soup.select_one('meta[property="og:image"]')
    if meta is None:
        return ""
    return meta.get("content") or ""


def parse_operator_html(html: str, url: str) -> OperatorRecord:
    soup = BeautifulSoup(html, "html.parser")

    name = _text(soup.select_one("#firstHeading")) or _text(soup.select_one(".pi-title"))
    date_global, event_name = parse_release(extract_first(soup, RELEASE_LABELS))

    return OperatorRecord(
        name=tidy(name),
        source=url,
        gender=tidy(extract_first(soup, GENDER_LABELS)),
        rarity=parse_rarity(extract_first(soup, RARITY_LABELS)),
        class_name=tidy(extract_first(soup, CLASS_LABELS)),
        archetype=tidy(extract_first(soup, ARCHETYPE_LABELS)),
        faction=tidy(extract_first(soup, FACTION_LABELS)),
        race=tidy(extract_first(soup, RACE_LABELS)),
        region=tidy(extract_first(soup, REGION_LABELS)),
        date_global=date_global,
        event_name=event_name,
        portrait=tidy(absolute_image_url(_portrait_src(soup))),
        full_image=tidy(absolute_image_url(_og_image(soup))),
    )


# -----------------------------
# LISTING CRAWLER
# -----------------------------


def _absolute_page_url(href: str) -> str:
    return urldefrag(urljoin(SITE_ROOT, href))[0]


def _looks_like_operator_link_text(text: str) -> bool:
    return bool(text) and len(text) < LINK_TEXT_MAX_LEN and bool(LINK_TEXT_LETTER_RE.search(text))


def extract_operator_links_from_listing_html(html: str) -> Set[str]:
    """
    Absolute operator page URLs found in the content area of a listing page.
    Namespaced links (File:, Category:, Help:, ...) are never returned.
    """
    soup = BeautifulSoup(html, "html.parser")
    root = soup.select_one("#mw-content-text") or soup

    links: Set[str] = set()

    for a in root.select(f'a[href^="{OPERATOR_PATH_PREFIX}"]'):
        href = a.get("href") or ""
        if ":" not in href:
            links.add(_absolute_page_url(href))

    # fallback: plain /wiki/<Name> links whose text looks like an operator name
    for a in root.select(f'a[href^="{WIKI_PATH_PREFIX}"]'):
        href = a.get("href") or ""
        if ":" in href:
            continue
        if LISTING_INDEX_RE.search(urldefrag(href)[0]):
            continue
        if _looks_like_operator_link_text(a.get_text().strip()):
            links.add(_absolute_page_url(href))

    return links
