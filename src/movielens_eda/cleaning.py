"""Normalise raw MovieLens tables into analysis-ready frames.

Titles carry their release year as a ``(YYYY)`` suffix, genres arrive as a
pipe-delimited string and timestamps as epoch seconds. The helpers here turn
those into separate columns without touching the input frames.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import pandas as pd

from movielens_eda.config import GENRE_DELIMITER, NO_GENRES
from movielens_eda.dataset import MovieLensTables

LOGGER = logging.getLogger(__name__)

# "Heat (1995)", "Cosmos (1980-1981)" and "Twin Peaks (1990-)" all match.
TITLE_YEAR_PATTERN = r"^(?P<title>.*?)\s*\((?P<year>\d{4})(?:\s*[-–]\s*(?:\d{4})?)?\)\s*$"


class CleanedDataset(NamedTuple):
    movies: pd.DataFrame
    movie_genres: pd.DataFrame
    ratings: pd.DataFrame
    tags: pd.DataFrame
    links: pd.DataFrame
    unparsed_titles: int


def split_title_year(titles: pd.Series) -> pd.DataFrame:
    """Split ``"Title (YYYY)"`` strings into a title and a nullable year.

    For a year range the first year is kept. Titles without a year suffix keep
    their original text and get a missing year.
    """

    stripped = titles.astype(object).str.strip()
    parts = stripped.str.extract(TITLE_YEAR_PATTERN)
    matched = parts["year"].notna()
    return pd.DataFrame(
        {
            "title": parts["title"].where(matched, stripped).astype(object),
            "year": pd.to_numeric(parts["year"], errors="coerce").astype("Int64"),
        },
        index=titles.index,
    )


def _split_genre_field(value: object) -> list[str] | None:
    if pd.isna(value) or value == NO_GENRES:
        return None
    return str(value).split(GENRE_DELIMITER)


def parse_genres(genres: pd.Series) -> pd.Series:
    """Turn pipe-delimited genre strings into lists, ``None`` for no genres."""

    return genres.astype(object).map(_split_genre_field)


def clean_movies(movies: pd.DataFrame) -> tuple[pd.DataFrame, int]:
    """Return a cleaned copy of ``movies`` and the number of unparsed titles."""

    title_year = split_title_year(movies["title"])
    cleaned = pd.DataFrame(
        {
            "movieId": movies["movieId"],
            "raw_title": movies["title"].astype(object),
            "title": title_year["title"],
            "year": title_year["year"],
            "genres": parse_genres(movies["genres"]),
        }
    )
    unparsed = int(cleaned["year"].isna().sum())
    if unparsed:
        LOGGER.warning("%d movie titles carry no parsable release year", unparsed)
    return cleaned, unparsed


def explode_genres(movies: pd.DataFrame) -> pd.DataFrame:
    """One row per (movie, genre), with the genre's position in the source string."""

    exploded = (
        movies.loc[movies["genres"].notna(), ["movieId", "genres"]]
        .explode("genres")
        .rename(columns={"genres": "genre"})
        .reset_index(drop=True)
    )
    exploded["position"] = exploded.groupby("movieId").cumcount()
    return exploded


def join_genres(movie_genres: pd.DataFrame) -> pd.Series:
    """Re-concatenate exploded genres into the original delimited string per movie."""

    ordered = movie_genres.sort_values(["movieId", "position"], kind="stable")
    return ordered.groupby("movieId", sort=True)["genre"].agg(GENRE_DELIMITER.join)


def convert_timestamps(frame: pd.DataFrame, column: str = "timestamp") -> pd.DataFrame:
    """Return a copy of ``frame`` with epoch seconds in ``column`` as datetimes."""

    converted = frame.copy()
    converted[column] = pd.to_datetime(converted[column], unit="s")
    return converted


def clean_dataset(tables: MovieLensTables) -> CleanedDataset:
    """Clean every table of the loaded dataset."""

    movies, unparsed = clean_movies(tables.movies)
    return CleanedDataset(
        movies=movies,
        movie_genres=explode_genres(movies),
        ratings=convert_timestamps(tables.ratings),
        tags=convert_timestamps(tables.tags),
        links=tables.links.copy(),
        unparsed_titles=unparsed,
    )
