"""Bookshare: a book-sharing social web service."""

__version__ = "1.0.0"
