"""Core models and exception taxonomy for relata."""
