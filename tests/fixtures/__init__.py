"""Test fixtures for Confluence payloads."""
