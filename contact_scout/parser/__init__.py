"""HTML parsing and contact-signal extractors."""
