# contact_scout/__init__.py
"""
ContactScout package initializer.
Defines package version and exposes the crawler entry points and CLI.
"""
__version__ = "0.1.0"

from contact_scout.crawler.crawler import ContactCrawler, scrape_website
from contact_scout.scheduler import extract_contact_info, process_batches

# Expose CLI entry point
from .cli import cli  # экспорт для pytest

__all__ = ["__version__", "ContactCrawler", "scrape_website", "process_batches", "extract_contact_info", "cli"]
