"""Join scraped IMDb fields onto the rated movies, cached on disk."""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Callable

import pandas as pd

from movielens_eda.config import ScrapeSettings
from movielens_eda.scraper import ScrapeStats, build_imdb_urls, scrape_pages

LOGGER = logging.getLogger(__name__)

SCRAPED_COLUMNS = ["cast", "director", "budget", "runtime"]


def scrape_movies(
    links: pd.DataFrame,
    settings: ScrapeSettings | None = None,
    fetch: Callable[[str], str] | None = None,
    cancel_event: threading.Event | None = None,
    progress: bool = True,
) -> tuple[pd.DataFrame, ScrapeStats]:
    """Scrape one IMDb page per link row and return the fields keyed by ``movieId``."""

    settings = settings or ScrapeSettings()
    urls = build_imdb_urls(links, settings.base_url)
    batch = scrape_pages(
        urls.tolist(), settings=settings, fetch=fetch, cancel_event=cancel_event, progress=progress
    )
    scraped = pd.DataFrame([asdict(record) for record in batch.records], columns=SCRAPED_COLUMNS)
    scraped.insert(0, "movieId", links["movieId"].to_numpy())
    return scraped, batch.stats


def read_enriched(cache_path: Path) -> pd.DataFrame:
    """Load a previously cached enriched dataset."""

    return pd.read_csv(cache_path, dtype={"movieId": "int64", "year": "Int64"})


def build_enriched_dataset(
    ranked: pd.DataFrame,
    links: pd.DataFrame,
    cache_path: Path,
    settings: ScrapeSettings | None = None,
    limit: int | None = None,
    fetch: Callable[[str], str] | None = None,
    progress: bool = True,
) -> tuple[pd.DataFrame, ScrapeStats | None]:
    """Return ranked movies joined with their scraped fields.

    The joined table is written to ``cache_path``; when that file already
    exists it is read back instead of scraping again. ``limit`` keeps only the
    top ``limit`` movies of ``ranked`` before scraping.
    """

    if cache_path.exists():
        LOGGER.info("Reusing enriched dataset at %s", cache_path)
        return read_enriched(cache_path), None

    candidates = ranked.head(limit) if limit is not None else ranked
    candidate_links = links.loc[links["movieId"].isin(candidates["movieId"])]
    scraped, stats = scrape_movies(candidate_links, settings=settings, fetch=fetch, progress=progress)

    enriched = candidates.drop(columns=["genres"], errors="ignore").merge(
        scraped, on="movieId", how="left"
    )
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    enriched.to_csv(cache_path, index=False)
    LOGGER.info("Saved enriched dataset to %s", cache_path)
    return enriched, stats
