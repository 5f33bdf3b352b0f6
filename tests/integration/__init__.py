"""Integration tests exercising several packages together on a real filesystem."""
