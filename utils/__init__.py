"""
Pure helpers for title normalization and similarity scoring.
"""
