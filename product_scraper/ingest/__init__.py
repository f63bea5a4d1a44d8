"""Fetching and extraction of product pages."""
