"""Fetch IMDb title pages and extract cast, director, budget and runtime.

Pages are fetched concurrently on a thread pool. Results are written back by
input position, so the returned records line up with the input URLs whatever
order the requests finish in. A failed fetch or a missing field never aborts
the batch; it leaves the affected fields as ``None`` and is counted in the
batch statistics.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, fields
from functools import partial
from typing import Callable, Iterable

import pandas as pd
import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from tqdm import tqdm
from urllib3.util.retry import Retry

from movielens_eda.config import (
    BUDGET_SELECTOR,
    CAST_SELECTOR,
    DIRECTOR_SELECTOR,
    NAME_DELIMITER,
    RUNTIME_SELECTOR,
    ScrapeSettings,
)

LOGGER = logging.getLogger(__name__)

TRANSIENT_STATUSES = (429, 500, 502, 503, 504)


class FetchError(Exception):
    """A page could not be fetched."""


class TransientFetchError(FetchError):
    """Timeouts, dropped connections and 429/5xx answers."""


class PermanentFetchError(FetchError):
    """Answers that will not change on retry, such as 404."""


@dataclass(frozen=True)
class ScrapedRecord:
    cast: str | None = None
    director: str | None = None
    budget: float | None = None
    runtime: float | None = None

    def missing_fields(self) -> list[str]:
        return [item.name for item in fields(self) if getattr(self, item.name) is None]


EMPTY_RECORD = ScrapedRecord()


@dataclass
class ScrapeStats:
    succeeded: int = 0
    transient_failures: int = 0
    permanent_failures: int = 0
    cancelled: int = 0
    missing_fields: Counter = field(default_factory=Counter)

    @property
    def total(self) -> int:
        return self.succeeded + self.transient_failures + self.permanent_failures + self.cancelled


@dataclass
class ScrapeBatch:
    records: list[ScrapedRecord]
    stats: ScrapeStats


def parse_budget(text: str | None) -> float | None:
    """``"$30,000,000 (estimated)"`` -> ``30000000.0``."""

    if not text:
        return None
    match = re.search(r"\d[\d,.\s]*", text)
    if match is None:
        return None
    digits = re.sub(r"\D", "", match.group(0))
    return float(digits) if digits else None


def parse_runtime(text: str | None) -> float | None:
    """Runtime in minutes from ``"1 hour 21 minutes"``, ``"1h 21m"`` or ``"81 min"``."""

    if not text:
        return None
    hours = re.search(r"(\d+)\s*h", text, re.IGNORECASE)
    minutes = re.search(r"(\d+)\s*m", text, re.IGNORECASE)
    if hours is None and minutes is None:
        bare = re.fullmatch(r"\s*(\d+)\s*", text)
        return float(bare.group(1)) if bare else None
    total = 0
    if hours is not None:
        total += int(hours.group(1)) * 60
    if minutes is not None:
        total += int(minutes.group(1))
    return float(total)


def _unique_texts(elements: Iterable) -> list[str]:
    texts = (element.get_text(" ", strip=True) for element in elements)
    return list(dict.fromkeys(text for text in texts if text))


def _join(values: list[str]) -> str | None:
    return NAME_DELIMITER.join(values) if values else None


def _directors(soup: BeautifulSoup) -> list[str]:
    for credit in soup.select(DIRECTOR_SELECTOR):
        label = credit.select_one(".ipc-metadata-list-item__label")
        if label is not None and label.get_text(strip=True).startswith("Director"):
            return _unique_texts(credit.select("a.ipc-metadata-list-item__list-content-item"))
    return []


def _first_text(soup: BeautifulSoup, selector: str) -> str | None:
    element = soup.select_one(selector)
    return element.get_text(" ", strip=True) if element is not None else None


def parse_movie_page(html: str) -> ScrapedRecord:
    soup = BeautifulSoup(html, "html.parser")
    return ScrapedRecord(
        cast=_join(_unique_texts(soup.select(CAST_SELECTOR))),
        director=_join(_directors(soup)),
        budget=parse_budget(_first_text(soup, BUDGET_SELECTOR)),
        runtime=parse_runtime(_first_text(soup, RUNTIME_SELECTOR)),
    )


def build_session(settings: ScrapeSettings) -> requests.Session:
    """Session that retries transient failures with exponential backoff."""

    session = requests.Session()
    retries = Retry(
        total=settings.retry_total,
        backoff_factor=settings.backoff_factor,
        status_forcelist=TRANSIENT_STATUSES,
        allowed_methods=["HEAD", "GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries, pool_maxsize=max(settings.max_workers, 10))
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"User-Agent": settings.user_agent, "Accept-Language": "en-US,en"})
    return session


def fetch_page(session: requests.Session, url: str, timeout: float) -> str:
    try:
        response = session.get(url, timeout=timeout)
    except (
        requests.Timeout,
        requests.ConnectionError,
        requests.exceptions.ChunkedEncodingError,
        requests.exceptions.RetryError,
    ) as exc:
        raise TransientFetchError(f"{url}: {exc}") from exc
    except requests.RequestException as exc:
        raise PermanentFetchError(f"{url}: {exc}") from exc

    if response.status_code in TRANSIENT_STATUSES:
        raise TransientFetchError(f"{url}: HTTP {response.status_code}")
    if response.status_code >= 400:
        raise PermanentFetchError(f"{url}: HTTP {response.status_code}")
    return response.text


class RateLimiter:
    """Spaces out calls to ``wait`` by at least ``min_interval`` seconds."""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_slot = 0.0

    def wait(self) -> None:
        if self.min_interval <= 0:
            return
        with self._lock:
            now = self._clock()
            delay = self._next_slot - now
            if delay > 0:
                self._sleep(delay)
                now += delay
            self._next_slot = now + self.min_interval


def _scrape_one(
    index: int,
    url: str | None,
    fetch: Callable[[str], str],
    limiter: RateLimiter,
    cancel_event: threading.Event,
) -> tuple[int, str, ScrapedRecord]:
    if url is None:
        return index, "permanent", EMPTY_RECORD
    if cancel_event.is_set():
        return index, "cancelled", EMPTY_RECORD
    limiter.wait()
    if cancel_event.is_set():
        return index, "cancelled", EMPTY_RECORD
    try:
        html = fetch(url)
        record = parse_movie_page(html)
    except TransientFetchError as exc:
        LOGGER.debug("Transient failure: %s", exc)
        return index, "transient", EMPTY_RECORD
    except PermanentFetchError as exc:
        LOGGER.debug("Permanent failure: %s", exc)
        return index, "permanent", EMPTY_RECORD
    except Exception:
        LOGGER.warning("Unexpected failure scraping %s", url, exc_info=True)
        return index, "permanent", EMPTY_RECORD
    return index, "ok", record


def scrape_pages(
    urls: Iterable[str | None],
    settings: ScrapeSettings | None = None,
    fetch: Callable[[str], str] | None = None,
    cancel_event: threading.Event | None = None,
    rate_limiter: RateLimiter | None = None,
    progress: bool = True,
) -> ScrapeBatch:
    """Scrape every URL and return one record per input, in input order.

    ``None`` entries stand for movies without an external id and yield empty
    records. After ``settings.max_consecutive_failures`` transient failures in
    a row the batch is cancelled and the remaining URLs are skipped; callers
    may also set ``cancel_event`` themselves.
    """

    settings = settings or ScrapeSettings()
    urls = list(urls)
    if fetch is None:
        fetch = partial(fetch_page, build_session(settings), timeout=settings.timeout)
    limiter = rate_limiter or RateLimiter(settings.min_interval)
    cancel_event = cancel_event or threading.Event()

    records = [EMPTY_RECORD] * len(urls)
    stats = ScrapeStats()
    consecutive_failures = 0

    with ThreadPoolExecutor(max_workers=max(1, settings.max_workers)) as executor:
        futures = [
            executor.submit(_scrape_one, index, url, fetch, limiter, cancel_event)
            for index, url in enumerate(urls)
        ]
        for future in tqdm(
            as_completed(futures), total=len(futures), desc="Scraping", disable=not progress
        ):
            index, outcome, record = future.result()
            records[index] = record
            if outcome == "ok":
                stats.succeeded += 1
                stats.missing_fields.update(record.missing_fields())
                consecutive_failures = 0
            elif outcome == "transient":
                stats.transient_failures += 1
                consecutive_failures += 1
            elif outcome == "permanent":
                stats.permanent_failures += 1
                consecutive_failures = 0
            else:
                stats.cancelled += 1

            if (
                consecutive_failures >= settings.max_consecutive_failures
                and not cancel_event.is_set()
            ):
                LOGGER.warning(
                    "Cancelling scrape after %d consecutive transient failures",
                    consecutive_failures,
                )
                cancel_event.set()

    LOGGER.info(
        "Scraped %d pages: %d ok, %d transient failures, %d permanent failures, %d cancelled",
        stats.total,
        stats.succeeded,
        stats.transient_failures,
        stats.permanent_failures,
        stats.cancelled,
    )
    return ScrapeBatch(records=records, stats=stats)


def build_imdb_urls(links: pd.DataFrame, base_url: str) -> pd.Series:
    """Title page URL per link row, ``None`` where the IMDb id is missing."""

    return links["imdbId"].map(
        lambda imdb_id: None if pd.isna(imdb_id) else f"{base_url}{int(imdb_id):07d}/"
    )
