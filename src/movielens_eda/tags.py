"""Tag frequency tables per genre, used to feed the word clouds."""

from __future__ import annotations

import pandas as pd

from movielens_eda.config import GENRE_TAG_SYNONYMS, WORDCLOUD_MAX_WORDS


def _self_referential_tags(genre: str) -> set[str]:
    excluded = {genre.lower()}
    excluded.update(synonym.lower() for synonym in GENRE_TAG_SYNONYMS.get(genre, ()))
    return excluded


def genre_tag_frequencies(
    movie_genres: pd.DataFrame,
    tags: pd.DataFrame,
    genre: str,
    max_words: int = WORDCLOUD_MAX_WORDS,
) -> pd.Series:
    """Most frequent lower-cased tags on movies of ``genre``.

    Tags equal to the genre name (or a known synonym of it) are dropped.
    Returns an empty series when the genre has no tagged movies.
    """

    genre_movies = movie_genres.loc[movie_genres["genre"] == genre, "movieId"].unique()
    tagged = tags.loc[tags["movieId"].isin(genre_movies), "tag"].dropna()
    normalised = tagged.astype(str).str.strip().str.lower()
    normalised = normalised.loc[
        (normalised != "") & ~normalised.isin(_self_referential_tags(genre))
    ]
    counts = normalised.value_counts()
    # value_counts leaves ties in arbitrary order; fix it for stable clouds
    frame = counts.rename_axis("tag").reset_index(name="count")
    frame = frame.sort_values(["count", "tag"], ascending=[False, True]).head(max_words)
    return frame.set_index("tag")["count"].astype("int64")


def tag_frequencies_by_genre(
    movie_genres: pd.DataFrame,
    tags: pd.DataFrame,
    genres: list[str] | None = None,
    max_words: int = WORDCLOUD_MAX_WORDS,
) -> dict[str, pd.Series]:
    """Tag frequencies for every genre that has at least one tag."""

    if genres is None:
        genres = sorted(movie_genres["genre"].unique())
    frequencies = {}
    for genre in genres:
        counts = genre_tag_frequencies(movie_genres, tags, genre, max_words=max_words)
        if not counts.empty:
            frequencies[genre] = counts
    return frequencies
