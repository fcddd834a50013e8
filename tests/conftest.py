from __future__ import annotations

import pandas as pd
import pytest

from movielens_eda.dataset import MovieLensTables


@pytest.fixture
def raw_tables() -> MovieLensTables:
    movies = pd.DataFrame(
        {
            "movieId": [1, 2, 3, 4, 5],
            "title": [
                "Toy Story (1995)",
                "Jumanji (1995)",
                "Cosmos (1980-1981)",
                "Babylon 5",
                "Heat (1995) ",
            ],
            "genres": [
                "Adventure|Animation|Children",
                "Adventure|Children|Fantasy",
                "Documentary",
                "(no genres listed)",
                "Action|Crime|Thriller",
            ],
        }
    )
    ratings = pd.DataFrame(
        {
            "userId": [1, 2, 3, 1, 2, 3],
            "movieId": [1, 1, 1, 2, 3, 5],
            "rating": [4.0, 5.0, 3.0, 3.5, 4.5, 2.0],
            "timestamp": [964982703, 964981247, 1104537600, 964982224, 1262304000, 1262304000],
        }
    )
    tags = pd.DataFrame(
        {
            "userId": [1, 2, 3, 3],
            "movieId": [1, 1, 2, 5],
            "tag": ["pixar", "Pixar", "jungle", "heist"],
            "timestamp": [1445714994, 1445714996, 1445715000, 1445715100],
        }
    )
    links = pd.DataFrame(
        {
            "movieId": [1, 2, 3, 4, 5],
            "imdbId": pd.array([114709, 113497, 81846, 105946, 113277], dtype="Int64"),
            "tmdbId": pd.array([862, 8844, None, 3137, 949], dtype="Int64"),
        }
    )
    return MovieLensTables(movies=movies, ratings=ratings, tags=tags, links=links)
