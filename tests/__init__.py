"""Tests for the Catalog Classes integration."""
