"""
Data layer - domain models and SQLite persistence.
"""
