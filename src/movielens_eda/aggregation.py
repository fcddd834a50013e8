"""Grouped statistics over the cleaned MovieLens tables."""

from __future__ import annotations

import numpy as np
import pandas as pd

from movielens_eda.config import NAME_DELIMITER


def weighted_rating(
    votes: float | np.ndarray | pd.Series,
    mean: float | np.ndarray | pd.Series,
    global_mean: float,
    prior: float,
) -> float | np.ndarray | pd.Series:
    """Shrink a raw mean rating towards ``global_mean``.

    ``wr = v / (v + m) * R + m / (v + m) * C``. Items without votes score
    exactly ``global_mean``, which also covers ``prior == 0`` with no votes.
    """

    if prior < 0:
        raise ValueError("prior must be non-negative")

    v = np.asarray(votes, dtype="float64")
    r = np.asarray(mean, dtype="float64")
    if np.any(v < 0):
        raise ValueError("vote counts must be non-negative")

    with np.errstate(divide="ignore", invalid="ignore"):
        denominator = v + prior
        shrunk = (v / denominator) * r + (prior / denominator) * global_mean
    result = np.where(v > 0, shrunk, global_mean)

    if isinstance(votes, pd.Series):
        return pd.Series(result, index=votes.index, name="weighted_rating")
    if result.ndim == 0:
        return float(result)
    return result


def movie_rating_stats(ratings: pd.DataFrame) -> pd.DataFrame:
    """Vote count and mean rating per movie."""

    return (
        ratings.groupby("movieId")
        .agg(vote_count=("rating", "size"), mean_rating=("rating", "mean"))
        .astype({"mean_rating": "float64"})
        .reset_index()
    )


def _vote_weighted_mean(stats: pd.DataFrame) -> float:
    total_votes = stats["vote_count"].sum()
    if total_votes == 0:
        return float("nan")
    return float((stats["vote_count"] * stats["mean_rating"]).sum() / total_votes)


def rank_movies(
    movies: pd.DataFrame,
    stats: pd.DataFrame,
    prior: float,
    global_mean: float | None = None,
) -> pd.DataFrame:
    """Attach vote statistics and the weighted rating to each rated movie.

    ``global_mean`` defaults to the mean over every individual rating.
    """

    if global_mean is None:
        global_mean = _vote_weighted_mean(stats)
    ranked = movies.merge(stats, on="movieId", how="inner")
    ranked["weighted_rating"] = weighted_rating(
        ranked["vote_count"], ranked["mean_rating"], global_mean, prior
    )
    return ranked.sort_values(
        ["weighted_rating", "title", "movieId"], ascending=[False, True, True], kind="stable"
    ).reset_index(drop=True)


def movies_per_year(movies: pd.DataFrame) -> pd.DataFrame:
    """Count of movies per release year with missing years filled as zero."""

    years = movies["year"].dropna().astype("int64")
    if years.empty:
        return pd.DataFrame({"year": pd.Series(dtype="int64"), "count": pd.Series(dtype="int64")})
    counts = years.value_counts()
    full_range = pd.RangeIndex(years.min(), years.max() + 1, name="year")
    filled = counts.reindex(full_range, fill_value=0).astype("int64")
    return filled.rename("count").reset_index()


def genre_counts(movie_genres: pd.DataFrame) -> pd.DataFrame:
    """Number of movies labelled with each genre, most common first."""

    counts = movie_genres.groupby("genre").size().rename("count").reset_index()
    return counts.sort_values(["count", "genre"], ascending=[False, True]).reset_index(drop=True)


def genres_per_movie(movies: pd.DataFrame) -> pd.Series:
    """Distribution of how many genres each movie lists (0 for none)."""

    sizes = movies["genres"].map(lambda genres: len(genres) if isinstance(genres, list) else 0)
    return sizes.value_counts().sort_index().rename_axis("genre_count").rename("movies")


def genre_popularity_per_year(movies: pd.DataFrame, movie_genres: pd.DataFrame) -> pd.DataFrame:
    """Year × genre table of movie counts, restricted to movies with a known year."""

    dated = movie_genres.merge(
        movies.loc[movies["year"].notna(), ["movieId", "year"]], on="movieId", how="inner"
    )
    table = dated.groupby(["year", "genre"]).size().unstack("genre", fill_value=0)
    table.index = table.index.astype("int64")
    return table.sort_index()


def genre_year_ratings(
    movies: pd.DataFrame,
    movie_genres: pd.DataFrame,
    ratings: pd.DataFrame,
    prior: float,
    global_mean: float | None = None,
) -> pd.DataFrame:
    """Weighted rating per (release year, genre) pooled over every rating."""

    dated = movie_genres.merge(
        movies.loc[movies["year"].notna(), ["movieId", "year"]], on="movieId", how="inner"
    )
    per_movie = movie_rating_stats(ratings)
    pooled = dated[["movieId", "year", "genre"]].merge(per_movie, on="movieId", how="inner")
    pooled["weighted_sum"] = pooled["vote_count"] * pooled["mean_rating"]
    stats = (
        pooled.groupby(["year", "genre"])
        .agg(vote_count=("vote_count", "sum"), weighted_sum=("weighted_sum", "sum"))
        .reset_index()
    )
    stats["mean_rating"] = stats.pop("weighted_sum") / stats["vote_count"]
    if global_mean is None:
        global_mean = float(ratings["rating"].mean())
    stats["year"] = stats["year"].astype("int64")
    stats["weighted_rating"] = weighted_rating(
        stats["vote_count"], stats["mean_rating"], global_mean, prior
    )
    return stats.sort_values(["year", "weighted_rating"], ascending=[True, False]).reset_index(
        drop=True
    )


def best_per_decade(ranked: pd.DataFrame) -> pd.DataFrame:
    """Highest weighted-rating movie in each release decade.

    Ties on weighted rating go to the alphabetically first title, then the
    lowest movie id.
    """

    dated = ranked.loc[ranked["year"].notna()].copy()
    dated["decade"] = (dated["year"].astype("int64") // 10) * 10
    ordered = dated.sort_values(
        ["decade", "weighted_rating", "title", "movieId"],
        ascending=[True, False, True, True],
        kind="stable",
    )
    return ordered.groupby("decade", sort=True).head(1).reset_index(drop=True)


def people_rating_stats(
    enriched: pd.DataFrame,
    column: str,
    prior: float,
    global_mean: float | None = None,
    min_films: int = 1,
) -> pd.DataFrame:
    """Rank the people listed in a pipe-joined ``column`` (director or cast).

    Each person's vote count is the total number of ratings over their films
    and their mean is the vote-weighted mean of those films.
    """

    rated = enriched.loc[enriched[column].notna() & (enriched["vote_count"] > 0)]
    people = rated.assign(
        person=rated[column].astype(str).str.split(NAME_DELIMITER),
        weighted_sum=rated["vote_count"] * rated["mean_rating"],
    ).explode("person")
    people["person"] = people["person"].str.strip()
    people = people.loc[people["person"] != ""]

    stats = people.groupby("person").agg(
        film_count=("movieId", "nunique"),
        vote_count=("vote_count", "sum"),
        weighted_sum=("weighted_sum", "sum"),
    )
    stats["mean_rating"] = stats["weighted_sum"] / stats["vote_count"]
    stats = stats.drop(columns="weighted_sum").query("film_count >= @min_films")
    if global_mean is None:
        global_mean = _vote_weighted_mean(rated)
    stats["weighted_rating"] = weighted_rating(
        stats["vote_count"], stats["mean_rating"], global_mean, prior
    )
    return (
        stats.reset_index()
        .sort_values(["weighted_rating", "person"], ascending=[False, True])
        .reset_index(drop=True)
    )


def rating_distribution(ratings: pd.DataFrame) -> pd.Series:
    """Number of ratings given at each score step."""

    return ratings["rating"].value_counts().sort_index().rename("count")


def ratings_per_year(ratings: pd.DataFrame) -> pd.Series:
    """Number of ratings submitted in each calendar year."""

    return ratings["timestamp"].dt.year.value_counts().sort_index().rename("count")


def numeric_correlations(
    enriched: pd.DataFrame,
    columns: tuple[str, ...] = ("budget", "runtime", "vote_count", "mean_rating"),
) -> pd.DataFrame:
    """Pairwise Pearson correlations, ignoring missing values pair by pair."""

    present = [column for column in columns if column in enriched.columns]
    return enriched[present].apply(pd.to_numeric, errors="coerce").corr(method="pearson")
