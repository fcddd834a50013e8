import numpy as np
import pandas as pd
import pytest

from movielens_eda import aggregation
from movielens_eda.cleaning import clean_dataset


def test_weighted_rating_matches_hand_computation():
    result = aggregation.weighted_rating(3, 4.0, global_mean=3.5, prior=500)

    assert result == pytest.approx((3 / 503) * 4.0 + (500 / 503) * 3.5)
    assert result == pytest.approx(3.503, abs=1e-3)


def test_weighted_rating_without_votes_is_global_mean():
    assert aggregation.weighted_rating(0, 4.8, global_mean=3.5, prior=500) == 3.5
    assert aggregation.weighted_rating(0, float("nan"), global_mean=3.5, prior=0) == 3.5


def test_weighted_rating_without_prior_is_raw_mean():
    assert aggregation.weighted_rating(10, 4.2, global_mean=3.5, prior=0) == pytest.approx(4.2)


@pytest.mark.parametrize("mean, increasing", [(4.5, True), (2.0, False)])
def test_weighted_rating_is_monotonic_in_votes(mean, increasing):
    votes = np.array([0, 1, 10, 100, 1000, 10000])

    scores = aggregation.weighted_rating(votes, np.full(len(votes), mean), 3.5, 500)

    steps = np.diff(scores)
    assert (steps > 0).all() if increasing else (steps < 0).all()


def test_weighted_rating_keeps_series_index():
    votes = pd.Series([5, 0], index=[10, 20])
    means = pd.Series([5.0, np.nan], index=[10, 20])

    result = aggregation.weighted_rating(votes, means, 3.0, 5)

    assert result.index.tolist() == [10, 20]
    assert result[10] == pytest.approx(4.0)
    assert result[20] == 3.0


def test_weighted_rating_rejects_negative_prior():
    with pytest.raises(ValueError):
        aggregation.weighted_rating(3, 4.0, 3.5, -1)


def test_movie_rating_stats_and_ranking(raw_tables):
    dataset = clean_dataset(raw_tables)
    stats = aggregation.movie_rating_stats(dataset.ratings)

    toy_story = stats.set_index("movieId").loc[1]
    assert toy_story["vote_count"] == 3
    assert toy_story["mean_rating"] == pytest.approx(4.0)

    ranked = aggregation.rank_movies(dataset.movies, stats, prior=500, global_mean=3.5)
    row = ranked.set_index("movieId").loc[1]
    assert row["weighted_rating"] == pytest.approx(1762 / 503)
    assert ranked["weighted_rating"].is_monotonic_decreasing


def test_rank_movies_defaults_to_mean_of_all_ratings(raw_tables):
    dataset = clean_dataset(raw_tables)
    stats = aggregation.movie_rating_stats(dataset.ratings)

    ranked = aggregation.rank_movies(dataset.movies, stats, prior=0)
    expected_mean = dataset.ratings["rating"].mean()
    assert aggregation._vote_weighted_mean(stats) == pytest.approx(expected_mean)
    assert len(ranked) == 4


def test_movies_per_year_fills_gaps_with_zero():
    movies = pd.DataFrame({"year": pd.array([1993, 1990, None, 1990], dtype="Int64")})

    per_year = aggregation.movies_per_year(movies)

    assert per_year["year"].tolist() == [1990, 1991, 1992, 1993]
    assert per_year["count"].tolist() == [2, 0, 0, 1]


def test_movies_per_year_without_years_is_empty():
    movies = pd.DataFrame({"year": pd.array([None], dtype="Int64")})

    assert aggregation.movies_per_year(movies).empty


def test_genre_counts_and_popularity(raw_tables):
    dataset = clean_dataset(raw_tables)

    counts = aggregation.genre_counts(dataset.movie_genres)
    assert counts.iloc[0].tolist() == ["Adventure", 2]

    popularity = aggregation.genre_popularity_per_year(dataset.movies, dataset.movie_genres)
    assert popularity.loc[1995, "Adventure"] == 2
    assert popularity.loc[1980, "Documentary"] == 1
    assert popularity.loc[1980, "Adventure"] == 0


def test_genres_per_movie(raw_tables):
    dataset = clean_dataset(raw_tables)

    distribution = aggregation.genres_per_movie(dataset.movies)

    assert distribution.to_dict() == {0: 1, 1: 1, 3: 3}


def test_genre_year_ratings_pools_votes(raw_tables):
    dataset = clean_dataset(raw_tables)

    stats = aggregation.genre_year_ratings(
        dataset.movies, dataset.movie_genres, dataset.ratings, prior=0, global_mean=3.5
    )

    adventure = stats.set_index(["year", "genre"]).loc[(1995, "Adventure")]
    assert adventure["vote_count"] == 4
    assert adventure["weighted_rating"] == pytest.approx((4.0 + 5.0 + 3.0 + 3.5) / 4)


def test_best_per_decade_breaks_ties_by_title():
    ranked = pd.DataFrame(
        {
            "movieId": [1, 2, 3, 4, 5],
            "title": ["Beta", "Alpha", "Gamma", "Delta", "Undated"],
            "year": pd.array([1995, 1991, 1999, 2001, None], dtype="Int64"),
            "weighted_rating": [4.0, 4.0, 3.0, 3.5, 5.0],
        }
    )

    best = aggregation.best_per_decade(ranked)

    assert best["decade"].tolist() == [1990, 2000]
    assert best["title"].tolist() == ["Alpha", "Delta"]


def test_people_rating_stats_pools_votes_per_person():
    enriched = pd.DataFrame(
        {
            "movieId": [1, 2, 3],
            "director": ["Ann|Bob", "Ann", None],
            "vote_count": [10, 30, 50],
            "mean_rating": [4.0, 3.0, 5.0],
        }
    )

    people = aggregation.people_rating_stats(enriched, "director", prior=0, global_mean=3.5)

    assert people["person"].tolist() == ["Bob", "Ann"]
    ann = people.set_index("person").loc["Ann"]
    assert ann["film_count"] == 2
    assert ann["vote_count"] == 40
    assert ann["mean_rating"] == pytest.approx(3.25)


def test_people_rating_stats_min_films():
    enriched = pd.DataFrame(
        {
            "movieId": [1, 2],
            "cast": ["Ann|Bob", "Ann"],
            "vote_count": [10, 30],
            "mean_rating": [4.0, 3.0],
        }
    )

    people = aggregation.people_rating_stats(enriched, "cast", prior=30, min_films=2)

    assert people["person"].tolist() == ["Ann"]


def test_rating_distribution_and_ratings_per_year(raw_tables):
    dataset = clean_dataset(raw_tables)

    distribution = aggregation.rating_distribution(dataset.ratings)
    per_year = aggregation.ratings_per_year(dataset.ratings)

    assert distribution.sum() == len(dataset.ratings)
    assert distribution.index.is_monotonic_increasing
    assert per_year.to_dict() == {2000: 3, 2005: 1, 2010: 2}


def test_numeric_correlations_ignore_missing_pairs():
    enriched = pd.DataFrame(
        {
            "budget": [1.0, 2.0, 3.0, np.nan],
            "runtime": [2.0, 4.0, 6.0, 8.0],
            "mean_rating": [1.0, 1.5, 2.0, 2.5],
        }
    )

    correlations = aggregation.numeric_correlations(enriched)

    assert "vote_count" not in correlations.columns
    assert correlations.loc["budget", "runtime"] == pytest.approx(1.0)
    assert correlations.loc["runtime", "mean_rating"] == pytest.approx(1.0)


def test_genre_year_ratings_counts_each_vote_once_per_genre():
    movies = pd.DataFrame(
        {
            "movieId": [1, 2],
            "title": ["One", "Two"],
            "year": pd.array([2000, 2000], dtype="Int64"),
            "genres": [["Drama", "Comedy"], ["Drama"]],
        }
    )
    movie_genres = pd.DataFrame(
        {"movieId": [1, 1, 2], "genre": ["Drama", "Comedy", "Drama"], "position": [0, 1, 0]}
    )
    ratings = pd.DataFrame({"movieId": [1, 1, 2], "rating": [5.0, 3.0, 2.0]})

    stats = aggregation.genre_year_ratings(movies, movie_genres, ratings, prior=0).set_index(
        ["year", "genre"]
    )

    assert stats.loc[(2000, "Drama"), "vote_count"] == 3
    assert stats.loc[(2000, "Drama"), "mean_rating"] == pytest.approx(10.0 / 3)
    assert stats.loc[(2000, "Comedy"), "vote_count"] == 2
    assert stats.loc[(2000, "Comedy"), "weighted_rating"] == pytest.approx(4.0)
