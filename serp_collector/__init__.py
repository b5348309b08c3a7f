"""SERP Collector — coordinates browser-extension workers scraping search results."""

__version__ = "1.0.0"
