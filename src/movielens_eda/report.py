"""Markdown report summarising the MovieLens analysis."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from movielens_eda.config import WeightingPriors
from movielens_eda.scraper import ScrapeStats

LOGGER = logging.getLogger(__name__)


@dataclass
class ReportInputs:
    source_url: str
    movie_count: int
    rating_count: int
    tag_count: int
    unparsed_titles: int
    priors: WeightingPriors
    per_year: pd.DataFrame
    genre_counts: pd.DataFrame
    ranked: pd.DataFrame
    best_decades: pd.DataFrame
    top_genre_years: pd.DataFrame
    scrape_stats: ScrapeStats | None = None
    correlations: pd.DataFrame | None = None
    directors: pd.DataFrame | None = None
    cast: pd.DataFrame | None = None
    genres_per_movie: pd.Series | None = None
    ratings_per_year: pd.Series | None = None


def _movie_label(title: str, year: object) -> str:
    return f"{title} ({int(year)})" if pd.notna(year) else title


def _cell(value: object) -> str:
    return str(value).replace("|", "\\|")


def _table(header: list[str], align: list[str], rows: list[list[str]]) -> list[str]:
    lines = ["| " + " | ".join(header) + " |", "| " + " | ".join(align) + " |"]
    lines.extend("| " + " | ".join(_cell(value) for value in row) + " |" for row in rows)
    return lines


def create_report(inputs: ReportInputs, output_path: Path, top_n: int = 15) -> None:
    """Write a Markdown report summarizing the analysis."""

    output_path.parent.mkdir(parents=True, exist_ok=True)

    report_lines = [
        "# MovieLens exploratory analysis",
        "",
        "## Dataset",
        f"* Source archive: [{inputs.source_url}]({inputs.source_url})",
        f"* Movies: {inputs.movie_count:,}",
        f"* Ratings: {inputs.rating_count:,}",
        f"* Tags: {inputs.tag_count:,}",
        f"* Titles without a parsable release year: {inputs.unparsed_titles:,}",
        "",
        "## Key findings",
    ]

    released = inputs.per_year.loc[inputs.per_year["count"] > 0]
    if not released.empty:
        peak = released.loc[released["count"].idxmax()]
        report_lines.append(
            f"- **Release activity peaks in {int(peak['year'])}** with {int(peak['count']):,} movies;"
            f" the catalogue spans {int(released['year'].min())}–{int(released['year'].max())}."
        )
    if not inputs.genre_counts.empty:
        leader = inputs.genre_counts.iloc[0]
        report_lines.append(
            f"- **{leader['genre']} is the most common genre**, labelling {int(leader['count']):,} movies."
        )
    if not inputs.ranked.empty:
        best = inputs.ranked.iloc[0]
        report_lines.append(
            f"- **{_movie_label(best['title'], best['year'])} tops the weighted ranking** at"
            f" {best['weighted_rating']:.2f} from {int(best['vote_count']):,} ratings"
            f" (prior m = {inputs.priors.movie:g})."
        )
    if inputs.correlations is not None and {"runtime", "mean_rating"}.issubset(
        inputs.correlations.columns
    ):
        value = inputs.correlations.loc["runtime", "mean_rating"]
        report_lines.append(
            f"- **Runtime and reception.** Among scraped titles, runtime and mean rating show a"
            f" Pearson correlation of {value:.2f}."
        )

    report_lines.extend(["", f"## Top {top_n} movies by weighted rating", ""])
    report_lines.extend(
        _table(
            ["Movie", "Ratings", "Mean", "Weighted"],
            ["---", "---:", "---:", "---:"],
            [
                [
                    _movie_label(row["title"], row["year"]),
                    f"{int(row['vote_count']):,}",
                    f"{row['mean_rating']:.2f}",
                    f"{row['weighted_rating']:.3f}",
                ]
                for _, row in inputs.ranked.head(top_n).iterrows()
            ],
        )
    )

    report_lines.extend(["", "## Best movie per decade", ""])
    report_lines.extend(
        _table(
            ["Decade", "Movie", "Ratings", "Weighted"],
            ["---", "---", "---:", "---:"],
            [
                [
                    f"{int(row['decade'])}s",
                    _movie_label(row["title"], row["year"]),
                    f"{int(row['vote_count']):,}",
                    f"{row['weighted_rating']:.3f}",
                ]
                for _, row in inputs.best_decades.iterrows()
            ],
        )
    )

    report_lines.extend(["", "## Genres", ""])
    report_lines.extend(
        _table(
            ["Genre", "Movies"],
            ["---", "---:"],
            [[row["genre"], f"{int(row['count']):,}"] for _, row in inputs.genre_counts.iterrows()],
        )
    )

    if inputs.genres_per_movie is not None and not inputs.genres_per_movie.empty:
        report_lines.extend(["", "### Genres listed per movie", ""])
        report_lines.extend(
            _table(
                ["Genres", "Movies"],
                ["---:", "---:"],
                [
                    [str(int(size)), f"{int(count):,}"]
                    for size, count in inputs.genres_per_movie.items()
                ],
            )
        )

    if inputs.ratings_per_year is not None and not inputs.ratings_per_year.empty:
        busiest = inputs.ratings_per_year.idxmax()
        report_lines.extend(
            [
                "",
                "## Rating activity",
                "",
                f"Ratings were submitted between {int(inputs.ratings_per_year.index.min())} and"
                f" {int(inputs.ratings_per_year.index.max())}; the busiest year was {int(busiest)}"
                f" with {int(inputs.ratings_per_year.loc[busiest]):,} ratings.",
                "",
            ]
        )
        report_lines.extend(
            _table(
                ["Year", "Ratings"],
                ["---", "---:"],
                [
                    [str(int(year)), f"{int(count):,}"]
                    for year, count in inputs.ratings_per_year.items()
                ],
            )
        )

    report_lines.extend(
        ["", f"## Strongest genre-years (prior m = {inputs.priors.genre_year:g})", ""]
    )
    report_lines.extend(
        _table(
            ["Year", "Genre", "Ratings", "Weighted"],
            ["---", "---", "---:", "---:"],
            [
                [
                    str(int(row["year"])),
                    row["genre"],
                    f"{int(row['vote_count']):,}",
                    f"{row['weighted_rating']:.3f}",
                ]
                for _, row in inputs.top_genre_years.iterrows()
            ],
        )
    )

    if inputs.scrape_stats is not None:
        stats = inputs.scrape_stats
        report_lines.extend(
            [
                "",
                "## Scrape diagnostics",
                "",
                f"* Pages fetched: {stats.succeeded:,}",
                f"* Transient failures: {stats.transient_failures:,}",
                f"* Permanent failures: {stats.permanent_failures:,}",
                f"* Skipped after cancellation: {stats.cancelled:,}",
            ]
        )
        for name, count in sorted(stats.missing_fields.items()):
            report_lines.append(f"* Pages missing {name}: {count:,}")

    for heading, people in (("Directors", inputs.directors), ("Cast", inputs.cast)):
        if people is None or people.empty:
            continue
        report_lines.extend(
            ["", f"## {heading} by weighted rating (prior m = {inputs.priors.person:g})", ""]
        )
        report_lines.extend(
            _table(
                ["Name", "Films", "Ratings", "Weighted"],
                ["---", "---:", "---:", "---:"],
                [
                    [
                        row["person"],
                        str(int(row["film_count"])),
                        f"{int(row['vote_count']):,}",
                        f"{row['weighted_rating']:.3f}",
                    ]
                    for _, row in people.head(top_n).iterrows()
                ],
            )
        )

    report_lines.append("")

    output_path.write_text("\n".join(report_lines), encoding="utf-8")
    LOGGER.info("Wrote report to %s", output_path)
