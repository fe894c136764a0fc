"""Supabase image index to Printify product sync service."""

__version__ = "1.0.0"
