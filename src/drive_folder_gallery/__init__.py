"""Scrape public Google Drive folders into static image galleries."""

__version__ = "0.1.0"
