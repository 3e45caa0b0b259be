"""knowme: turn an owner's documents into a public, streaming Q&A assistant."""

__version__ = "0.1.0"
