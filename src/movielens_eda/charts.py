"""Charts and word clouds for the MovieLens report."""

from __future__ import annotations

import logging
import math
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from wordcloud import WordCloud

LOGGER = logging.getLogger(__name__)


def _save_figure(fig: plt.Figure, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    LOGGER.info("Saved chart to %s", path)


def generate_movies_per_year_chart(per_year: pd.DataFrame, output_path: Path) -> None:
    """Plot the number of movies released per year."""

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.plot(per_year["year"], per_year["count"], color="#1f4e79")
    ax.fill_between(per_year["year"], per_year["count"], alpha=0.2, color="#1f4e79")
    ax.set_xlabel("Release year")
    ax.set_ylabel("Movies")
    ax.set_title("Movies released per year")

    _save_figure(fig, output_path)


def generate_genre_count_chart(genre_counts: pd.DataFrame, output_path: Path) -> None:
    """Plot how many movies carry each genre label."""

    order = genre_counts.sort_values("count", ascending=True)
    colors = sns.color_palette("viridis", len(order))

    fig, ax = plt.subplots(figsize=(10, 8))
    bars = ax.barh(order["genre"], order["count"], color=colors)
    ax.set_xlabel("Movies")
    ax.set_ylabel("")
    ax.set_title("Movies per genre")

    for bar, count in zip(bars, order["count"]):
        ax.text(
            bar.get_width(),
            bar.get_y() + bar.get_height() / 2,
            f" {int(count):,}",
            va="center",
            fontsize=9,
            color="dimgray",
        )

    _save_figure(fig, output_path)


def generate_genre_popularity_chart(
    popularity: pd.DataFrame, output_path: Path, top_n: int = 6, since: int = 1950
) -> None:
    """Plot yearly movie counts for the ``top_n`` largest genres."""

    recent = popularity.loc[popularity.index >= since]
    if recent.empty:
        recent = popularity
    top_genres = recent.sum().nlargest(top_n).index
    long_form = (
        recent[top_genres]
        .rename_axis(index="year", columns="genre")
        .stack()
        .rename("movies")
        .reset_index()
    )

    fig, ax = plt.subplots(figsize=(12, 7))
    sns.lineplot(data=long_form, x="year", y="movies", hue="genre", palette="tab10", ax=ax)
    ax.set_xlabel("Release year")
    ax.set_ylabel("Movies")
    ax.set_title("Genre popularity over time")

    _save_figure(fig, output_path)


def generate_rating_distribution_chart(distribution: pd.Series, output_path: Path) -> None:
    """Plot how many ratings were given at each score."""

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.bar(distribution.index.astype(str), distribution.to_numpy(), color="#5e35b1")
    ax.set_xlabel("Rating")
    ax.set_ylabel("Ratings")
    ax.set_title("Distribution of ratings")

    _save_figure(fig, output_path)


def generate_ratings_per_year_chart(per_year: pd.Series, output_path: Path) -> None:
    """Plot how many ratings were submitted each calendar year."""

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.bar(per_year.index.astype(int), per_year.to_numpy(), color="#00897b")
    ax.set_xlabel("Year rated")
    ax.set_ylabel("Ratings")
    ax.set_title("Ratings submitted per year")

    _save_figure(fig, output_path)


def generate_top_movies_chart(ranked: pd.DataFrame, output_path: Path, top_n: int = 15) -> None:
    """Plot the highest weighted-rating movies with their vote counts."""

    top = ranked.head(top_n).iloc[::-1]
    labels = [
        f"{title} ({int(year)})" if pd.notna(year) else title
        for title, year in zip(top["title"], top["year"])
    ]

    fig, ax = plt.subplots(figsize=(11, 8))
    bars = ax.barh(labels, top["weighted_rating"], color=sns.color_palette("magma", len(top)))
    ax.set_xlabel("Weighted rating")
    ax.set_ylabel("")
    ax.set_title("Top movies by weighted rating")
    ax.set_xlim(left=max(0.0, top["weighted_rating"].min() - 0.5))

    for bar, votes in zip(bars, top["vote_count"]):
        ax.text(
            bar.get_width() + 0.01,
            bar.get_y() + bar.get_height() / 2,
            f"n={int(votes):,}",
            va="center",
            fontsize=9,
            color="dimgray",
        )

    _save_figure(fig, output_path)


def generate_best_per_decade_chart(best: pd.DataFrame, output_path: Path) -> None:
    """Plot the best-rated movie of every decade."""

    labelled = best.assign(label=best["decade"].astype(str) + "s")

    fig, ax = plt.subplots(figsize=(11, 7))
    sns.barplot(
        data=labelled,
        x="weighted_rating",
        y="label",
        hue="weighted_rating",
        palette="crest",
        dodge=False,
        legend=False,
        ax=ax,
    )
    ax.set_xlabel("Weighted rating")
    ax.set_ylabel("")
    ax.set_title("Best movie of each decade")

    for index, row in enumerate(labelled.itertuples()):
        ax.text(0.05, index, row.title, va="center", color="white", fontsize=9)

    _save_figure(fig, output_path)


def generate_wordcloud_grid(
    frequencies: dict[str, pd.Series], output_path: Path, columns: int = 3
) -> None:
    """Render one tag word cloud per genre in a grid."""

    if not frequencies:
        LOGGER.warning("No tag frequencies available, skipping word clouds")
        return

    rows = math.ceil(len(frequencies) / columns)
    fig, axes = plt.subplots(rows, columns, figsize=(6 * columns, 3.5 * rows), squeeze=False)
    for ax in axes.flat:
        ax.axis("off")

    for ax, (genre, counts) in zip(axes.flat, frequencies.items()):
        cloud = WordCloud(
            width=600,
            height=350,
            background_color="white",
            colormap="viridis",
            max_words=len(counts),
        ).generate_from_frequencies(counts.to_dict())
        ax.imshow(cloud, interpolation="bilinear")
        ax.set_title(genre, fontsize=14, fontweight="bold")

    _save_figure(fig, output_path)


def generate_feature_rating_chart(
    enriched: pd.DataFrame, feature: str, output_path: Path, label: str
) -> float:
    """Plot ``feature`` against mean rating and return their correlation."""

    data = enriched[[feature, "mean_rating"]].apply(pd.to_numeric, errors="coerce").dropna()
    if data.empty:
        LOGGER.warning("No %s values scraped, skipping %s", feature, output_path.name)
        return float("nan")
    correlation = float(data[feature].corr(data["mean_rating"])) if len(data) > 1 else float("nan")

    fig, ax = plt.subplots(figsize=(9, 7))
    sns.regplot(
        data=data,
        x=feature,
        y="mean_rating",
        scatter_kws={"alpha": 0.45},
        line_kws={"color": "#1f4e79"},
        ax=ax,
    )
    ax.set_xlabel(label)
    ax.set_ylabel("Mean rating")
    ax.set_title(f"{label} vs. rating")
    ax.text(
        0.05,
        0.95,
        f"Pearson r = {correlation:.2f}",
        transform=ax.transAxes,
        ha="left",
        va="top",
        bbox={"boxstyle": "round", "facecolor": "white", "alpha": 0.8},
    )

    _save_figure(fig, output_path)
    return correlation


def generate_people_chart(
    people: pd.DataFrame, output_path: Path, title: str, top_n: int = 15
) -> None:
    """Plot the top-ranked directors or cast members."""

    top = people.head(top_n).iloc[::-1]

    fig, ax = plt.subplots(figsize=(10, 8))
    bars = ax.barh(top["person"], top["weighted_rating"], color="#90a4ae")
    ax.set_xlabel("Weighted rating")
    ax.set_ylabel("")
    ax.set_title(title)
    if not top.empty:
        ax.set_xlim(left=max(0.0, top["weighted_rating"].min() - 0.5))

    for bar, (_, row) in zip(bars, top.iterrows()):
        ax.text(
            bar.get_width() - 0.02,
            bar.get_y() + bar.get_height() / 2,
            f"{row['weighted_rating']:.2f} ({int(row['film_count'])} films)",
            va="center",
            ha="right",
            fontsize=9,
        )

    _save_figure(fig, output_path)
