"""GLSI: query the web, scrape the top results, cache the consolidated text."""

__version__ = "1.0.0"
