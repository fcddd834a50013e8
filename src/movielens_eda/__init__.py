"""Exploratory analysis of the MovieLens ratings dataset."""

__version__ = "0.1.0"
