"""Command-line entry point running the full MovieLens report."""

from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path

import seaborn as sns

from movielens_eda import aggregation, charts, tags
from movielens_eda.cleaning import clean_dataset
from movielens_eda.config import (
    CHARTS_DIR,
    DEFAULT_DATASET,
    ENRICHED_CACHE_NAME,
    PROCESSED_DIR,
    RAW_DIR,
    REPORTS_DIR,
    ScrapeSettings,
    WeightingPriors,
    dataset_url,
)
from movielens_eda.dataset import download_dataset, extract_archive, load_tables
from movielens_eda.enrichment import build_enriched_dataset
from movielens_eda.report import ReportInputs, create_report

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = WeightingPriors()
    parser = argparse.ArgumentParser(description="Exploratory analysis of a MovieLens dataset")
    parser.add_argument("--dataset", default=DEFAULT_DATASET, help="MovieLens archive name")
    parser.add_argument("--data-dir", type=Path, default=RAW_DIR)
    parser.add_argument("--processed-dir", type=Path, default=PROCESSED_DIR)
    parser.add_argument("--charts-dir", type=Path, default=CHARTS_DIR)
    parser.add_argument("--reports-dir", type=Path, default=REPORTS_DIR)
    parser.add_argument(
        "--scrape",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enrich top movies with cast, director, budget and runtime from IMDb",
    )
    parser.add_argument("--scrape-limit", type=int, default=1000, help="Movies to scrape")
    parser.add_argument("--workers", type=int, default=None, help="Scraper thread count")
    parser.add_argument("--timeout", type=float, default=None, help="Per-request timeout (s)")
    parser.add_argument("--movie-prior", type=float, default=defaults.movie)
    parser.add_argument("--genre-year-prior", type=float, default=defaults.genre_year)
    parser.add_argument("--person-prior", type=float, default=defaults.person)
    parser.add_argument("--top-n", type=int, default=15)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _scrape_settings(args: argparse.Namespace) -> ScrapeSettings:
    overrides = {}
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    return dataclasses.replace(ScrapeSettings(), **overrides)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sns.set_theme(style="whitegrid", context="talk")

    priors = WeightingPriors(
        movie=args.movie_prior, genre_year=args.genre_year_prior, person=args.person_prior
    )

    archive_path = download_dataset(args.dataset, args.data_dir)
    table_dir = extract_archive(archive_path)
    dataset = clean_dataset(load_tables(table_dir))

    global_mean = float(dataset.ratings["rating"].mean())
    per_year = aggregation.movies_per_year(dataset.movies)
    genre_counts = aggregation.genre_counts(dataset.movie_genres)
    popularity = aggregation.genre_popularity_per_year(dataset.movies, dataset.movie_genres)
    stats = aggregation.movie_rating_stats(dataset.ratings)
    ranked = aggregation.rank_movies(dataset.movies, stats, priors.movie, global_mean)
    best_decades = aggregation.best_per_decade(ranked)
    genre_years = aggregation.genre_year_ratings(
        dataset.movies, dataset.movie_genres, dataset.ratings, priors.genre_year, global_mean
    )
    top_genre_years = genre_years.sort_values("weighted_rating", ascending=False).head(args.top_n)
    frequencies = tags.tag_frequencies_by_genre(dataset.movie_genres, dataset.tags)
    genre_sizes = aggregation.genres_per_movie(dataset.movies)
    rating_years = aggregation.ratings_per_year(dataset.ratings)

    charts_dir = args.charts_dir
    charts.generate_movies_per_year_chart(per_year, charts_dir / "movies_per_year.png")
    charts.generate_genre_count_chart(genre_counts, charts_dir / "genre_counts.png")
    charts.generate_genre_popularity_chart(popularity, charts_dir / "genre_popularity.png")
    charts.generate_rating_distribution_chart(
        aggregation.rating_distribution(dataset.ratings), charts_dir / "rating_distribution.png"
    )
    charts.generate_ratings_per_year_chart(rating_years, charts_dir / "ratings_per_year.png")
    charts.generate_top_movies_chart(ranked, charts_dir / "top_movies.png", top_n=args.top_n)
    charts.generate_best_per_decade_chart(best_decades, charts_dir / "best_per_decade.png")
    charts.generate_wordcloud_grid(frequencies, charts_dir / "genre_tag_clouds.png")

    inputs = ReportInputs(
        source_url=dataset_url(args.dataset),
        movie_count=len(dataset.movies),
        rating_count=len(dataset.ratings),
        tag_count=len(dataset.tags),
        unparsed_titles=dataset.unparsed_titles,
        priors=priors,
        per_year=per_year,
        genre_counts=genre_counts,
        ranked=ranked,
        best_decades=best_decades,
        top_genre_years=top_genre_years,
        genres_per_movie=genre_sizes,
        ratings_per_year=rating_years,
    )

    cache_path = args.processed_dir / f"{args.dataset}_{ENRICHED_CACHE_NAME}"
    if args.scrape or cache_path.exists():
        enriched, scrape_stats = build_enriched_dataset(
            ranked,
            dataset.links,
            cache_path,
            settings=_scrape_settings(args),
            limit=args.scrape_limit,
        )
        inputs.scrape_stats = scrape_stats
        inputs.correlations = aggregation.numeric_correlations(enriched)
        inputs.directors = aggregation.people_rating_stats(
            enriched, "director", priors.person, global_mean
        )
        inputs.cast = aggregation.people_rating_stats(enriched, "cast", priors.person, global_mean)
        charts.generate_feature_rating_chart(
            enriched, "runtime", charts_dir / "runtime_vs_rating.png", "Runtime (minutes)"
        )
        charts.generate_feature_rating_chart(
            enriched, "budget", charts_dir / "budget_vs_rating.png", "Budget"
        )
        charts.generate_people_chart(
            inputs.directors, charts_dir / "top_directors.png", "Directors by weighted rating"
        )
        charts.generate_people_chart(
            inputs.cast, charts_dir / "top_cast.png", "Cast members by weighted rating"
        )

    create_report(inputs, args.reports_dir / "movielens_insights.md", top_n=args.top_n)
    LOGGER.info("Analysis complete. Charts available in %s", charts_dir)


if __name__ == "__main__":
    main()
