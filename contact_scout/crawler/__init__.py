"""Fetching, redirect resolution and site crawl orchestration."""
