#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Arknights Wiki (wiki.gg) – Operator Crawler
- Reads operator links from the rarity listing pages: https://arknights.wiki.gg/wiki/Operator/<n>-star
- Fetches each operator page (best-effort) and extracts a profile from the Portable Infobox
- Dedupes by operator name and stores everything in ONE JSON array, sorted by name,
  which the guess game imports as a static file

A page or listing that fails is logged and skipped; the run still writes what it got.

Usage:
  python fetch_operators.py
  python fetch_operators.py --out src/components/operators.json --max 50
  python fetch_operators.py --listing-sleep 1.0 --page-sleep 0.8

Deps:
  pip install requests beautifulsoup4
"""

import argparse
import json
import logging
import os
import time
import unicodedata
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, TypeVar

import requests

from wiki_extract import (
    WIKI_BASE,
    OperatorRecord,
    extract_operator_links_from_listing_html,
    parse_operator_html,
)

log = logging.getLogger(__name__)

# -----------------------------
# CONFIG (defaults)
# -----------------------------

RARITY_PAGES = (
    "Operator/1-star",
    "Operator/2-star",
    "Operator/3-star",
    "Operator/4-star",
    "Operator/5-star",
    "Operator/6-star",
)
LISTING_URLS = tuple(WIKI_BASE + page for page in RARITY_PAGES)

DEFAULT_OUT_PATH = os.path.join("src", "components", "operators.json")

DEFAULT_USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (compatible; fetchOperatorsBot/1.0; +https://example.local)",
)

HTTP_CONNECT_TIMEOUT = float(os.getenv("HTTP_CONNECT_TIMEOUT", "5"))
HTTP_READ_TIMEOUT = float(os.getenv("HTTP_READ_TIMEOUT", "20"))

LISTING_SLEEP_S = 0.6
PAGE_SLEEP_S = 0.5

T = TypeVar("T")
Sleep = Callable[[float], None]


class WikiClient:
    """Plain GET with an identifying User-Agent. No retries: a failed request is final."""

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self.s = session or requests.Session()
        self.s.headers.update(
            {
                "User-Agent": DEFAULT_USER_AGENT,
                "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
            }
        )

    def get_html(self, url: str) -> str:
        r = self.s.get(url, timeout=(HTTP_CONNECT_TIMEOUT, HTTP_READ_TIMEOUT))
        r.raise_for_status()
        return r.text


def paced(items: Iterable[T], delay_s: float, sleep: Sleep = time.sleep) -> Iterator[T]:
    """
    Yields items in order and sleeps delay_s between two consecutive items,
    so requests made per item never run back to back.
    """
    for idx, item in enumerate(items):
        if idx and delay_s > 0:
            sleep(delay_s)
        yield item


def operator_sort_key(name: str) -> Tuple[str, str]:
    # accent/case-insensitive first ("Ästhetik" next to "Aesthetic"), exact text as tie-break
    normalized = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return base.casefold(), name


# -----------------------------
# PIPELINE STAGES
# -----------------------------


def discover_operator_links(client: WikiClient, listing_url: str) -> Set[str]:
    return extract_operator_links_from_listing_html(client.get_html(listing_url))


def parse_operator_page(client: WikiClient, url: str) -> Optional[OperatorRecord]:
    try:
        return parse_operator_html(client.get_html(url), url)
    except Exception as e:
        log.warning("Failed for %s: %s", url, e)
        return None


def discover_operator_urls(
    client: WikiClient,
    listing_urls: Sequence[str],
    delay_s: float = LISTING_SLEEP_S,
    sleep: Sleep = time.sleep,
) -> Set[str]:
    urls: Set[str] = set()
    for listing_url in paced(listing_urls, delay_s, sleep):
        log.info("[LIST] %s", listing_url)
        try:
            links = discover_operator_links(client, listing_url)
        except Exception as e:
            log.warning("Failed to fetch listing %s: %s", listing_url, e)
            continue
        log.info("[LIST] found %d links on %s", len(links), listing_url)
        urls |= links

    # listing pages link to each other under /wiki/Operator/...
    return urls - set(listing_urls)


def parse_operator_pages(
    client: WikiClient,
    urls: Sequence[str],
    delay_s: float = PAGE_SLEEP_S,
    sleep: Sleep = time.sleep,
) -> List[OperatorRecord]:
    records: List[OperatorRecord] = []
    total = len(urls)
    for idx, url in enumerate(paced(urls, delay_s, sleep), start=1):
        log.info("[CRAWL] %d/%d %s", idx, total, url)
        record = parse_operator_page(client, url)
        if record is not None:
            records.append(record)
    return records


def dedupe_and_sort(records: Iterable[OperatorRecord]) -> List[OperatorRecord]:
    """First record per name wins; nameless records are dropped."""
    by_name: Dict[str, OperatorRecord] = {}
    for record in records:
        if not record.name:
            continue
        by_name.setdefault(record.name, record)
    return sorted(by_name.values(), key=lambda r: operator_sort_key(r.name))


def save_json(path: str, data: Any) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    os.replace(tmp, path)


def run(
    client: WikiClient,
    out_path: str = DEFAULT_OUT_PATH,
    listing_urls: Sequence[str] = LISTING_URLS,
    listing_sleep: float = LISTING_SLEEP_S,
    page_sleep: float = PAGE_SLEEP_S,
    max_pages: int = 0,
    sleep: Sleep = time.sleep,
) -> List[OperatorRecord]:
    urls = sorted(discover_operator_urls(client, listing_urls, listing_sleep, sleep))
    log.info("Total unique operator pages to parse: %d", len(urls))

    if max_pages and max_pages > 0:
        urls = urls[:max_pages]

    records = parse_operator_pages(client, urls, page_sleep, sleep)
    final = dedupe_and_sort(records)

    save_json(out_path, [r.to_dict() for r in final])
    log.info("[DONE] Wrote: %s (operators=%d)", out_path, len(final))
    return final


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", default=DEFAULT_OUT_PATH, help="Output JSON file")
    ap.add_argument("--max", type=int, default=0, help="Limit number of operator pages (0 = no limit)")
    ap.add_argument("--listing-sleep", type=float, default=LISTING_SLEEP_S, help="Sleep between listing pages (seconds)")
    ap.add_argument("--page-sleep", type=float, default=PAGE_SLEEP_S, help="Sleep between operator pages (seconds)")
    ap.add_argument("--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        run(
            WikiClient(),
            out_path=args.out,
            listing_sleep=args.listing_sleep,
            page_sleep=args.page_sleep,
            max_pages=args.max,
        )
    except Exception:
        log.exception("Operator crawl failed")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
