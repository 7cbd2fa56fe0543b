"""Command-line interface for session-normalizer."""
