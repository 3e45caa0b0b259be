"""Command-line tools for operating the KnowMe document pipeline."""
