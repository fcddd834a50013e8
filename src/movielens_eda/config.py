"""Paths, download locations and tunable constants for the MovieLens report."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent
RAW_DIR = BASE_DIR / "data" / "raw"
PROCESSED_DIR = BASE_DIR / "data" / "processed"
CHARTS_DIR = BASE_DIR / "charts"
REPORTS_DIR = BASE_DIR / "reports"

DEFAULT_DATASET = "ml-25m"
DATA_URL_TEMPLATE = "https://files.grouplens.org/datasets/movielens/{name}.zip"

ENRICHED_CACHE_NAME = "movies_enriched.csv"

GENRE_DELIMITER = "|"
NAME_DELIMITER = "|"
NO_GENRES = "(no genres listed)"

# Tags that only restate the genre are dropped before counting.
GENRE_TAG_SYNONYMS = {
    "Sci-Fi": ("science fiction",),
}
WORDCLOUD_MAX_WORDS = 50

# Selectors for the IMDb title page layout.
CAST_SELECTOR = 'a[data-testid="title-cast-item__actor"]'
DIRECTOR_SELECTOR = 'li[data-testid="title-pc-principal-credit"]'
BUDGET_SELECTOR = 'li[data-testid="title-boxoffice-budget"] .ipc-metadata-list-item__list-content-item'
RUNTIME_SELECTOR = 'li[data-testid="title-techspec_runtime"] .ipc-metadata-list-item__content-container'


def dataset_url(name: str = DEFAULT_DATASET) -> str:
    return DATA_URL_TEMPLATE.format(name=name)


@dataclass(frozen=True)
class WeightingPriors:
    """Minimum-vote prior strengths for the weighted rating.

    Each value should be on the scale of the vote counts of the population it
    ranks: single movies collect hundreds of votes, a genre within one year
    collects thousands, and a director or actor is ranked on the votes of
    their scraped films.
    """

    movie: float = 500
    genre_year: float = 5000
    person: float = 30

    def __post_init__(self) -> None:
        for name in ("movie", "genre_year", "person"):
            if getattr(self, name) < 0:
                raise ValueError(f"Prior strength '{name}' must be non-negative")


@dataclass(frozen=True)
class ScrapeSettings:
    base_url: str = "https://www.imdb.com/title/tt"
    timeout: float = 10.0
    max_workers: int = field(default_factory=lambda: os.cpu_count() or 4)
    retry_total: int = 3
    backoff_factor: float = 0.5
    min_interval: float = 0.1
    max_consecutive_failures: int = 25
    user_agent: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )
