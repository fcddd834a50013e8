"""Download the MovieLens archive and load its four tables."""

from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path
from typing import Callable, NamedTuple

import pandas as pd
import requests

from movielens_eda.config import DEFAULT_DATASET, RAW_DIR, dataset_url

LOGGER = logging.getLogger(__name__)

TABLE_NAMES = ("movies", "ratings", "tags", "links")


class MovieLensTables(NamedTuple):
    movies: pd.DataFrame
    ratings: pd.DataFrame
    tags: pd.DataFrame
    links: pd.DataFrame


def download_dataset(
    name: str = DEFAULT_DATASET, raw_dir: Path = RAW_DIR, url: str | None = None
) -> Path:
    """Download the dataset archive if it is not already cached."""

    destination = raw_dir / f"{name}.zip"
    destination.parent.mkdir(parents=True, exist_ok=True)
    if destination.exists():
        LOGGER.info("Reusing cached archive at %s", destination)
        return destination

    url = url or dataset_url(name)
    LOGGER.info("Downloading dataset archive from %s", url)
    partial = destination.with_suffix(".part")
    with requests.get(url, stream=True, timeout=60) as response:
        response.raise_for_status()
        with partial.open("wb") as target:
            for chunk in response.iter_content(chunk_size=1 << 20):
                target.write(chunk)
    partial.replace(destination)
    LOGGER.info("Saved archive to %s", destination)
    return destination


def extract_archive(zip_path: Path, output_dir: Path | None = None) -> Path:
    """Extract the four CSV tables and return the directory holding them."""

    output_dir = output_dir or zip_path.parent
    table_dir = output_dir / zip_path.stem
    if all((table_dir / f"{table}.csv").exists() for table in TABLE_NAMES):
        LOGGER.info("Reusing extracted tables in %s", table_dir)
        return table_dir

    with zipfile.ZipFile(zip_path) as archive:
        members = {Path(member).name: member for member in archive.namelist()}
        table_dir.mkdir(parents=True, exist_ok=True)
        for table in TABLE_NAMES:
            member_name = members.get(f"{table}.csv")
            if member_name is None:
                raise FileNotFoundError(
                    f"Expected member '{table}.csv' not found in archive {zip_path}"
                )
            with archive.open(member_name) as source, (table_dir / f"{table}.csv").open(
                "wb"
            ) as target:
                shutil.copyfileobj(source, target)
    LOGGER.info("Extracted MovieLens tables to %s", table_dir)
    return table_dir


def read_movies(path: Path) -> pd.DataFrame:
    return pd.read_csv(
        path, dtype={"movieId": "int64", "title": str, "genres": str}
    )


def read_ratings(path: Path) -> pd.DataFrame:
    return pd.read_csv(
        path,
        usecols=["userId", "movieId", "rating", "timestamp"],
        dtype={"userId": "int32", "movieId": "int64", "rating": "float32", "timestamp": "int64"},
    )


def read_tags(path: Path) -> pd.DataFrame:
    return pd.read_csv(
        path,
        usecols=["userId", "movieId", "tag", "timestamp"],
        dtype={"userId": "int32", "movieId": "int64", "tag": str, "timestamp": "int64"},
    )


def read_links(path: Path) -> pd.DataFrame:
    return pd.read_csv(path, dtype={"movieId": "int64", "imdbId": "Int64", "tmdbId": "Int64"})


TABLE_LOADERS: dict[str, Callable[[Path], pd.DataFrame]] = {
    "movies": read_movies,
    "ratings": read_ratings,
    "tags": read_tags,
    "links": read_links,
}


def load_tables(table_dir: Path) -> MovieLensTables:
    """Load the movies, ratings, tags and links tables from ``table_dir``."""

    missing = [name for name in TABLE_NAMES if not (table_dir / f"{name}.csv").exists()]
    if missing:
        raise FileNotFoundError(
            f"Missing MovieLens tables in {table_dir}: {', '.join(missing)}"
        )

    loaded = {}
    for name in TABLE_NAMES:
        loaded[name] = TABLE_LOADERS[name](table_dir / f"{name}.csv")
        LOGGER.info("Loaded %s: %s rows", name, f"{len(loaded[name]):,}")
    return MovieLensTables(**loaded)
