"""taskdeck: console task manager backed by a hosted Supabase project."""

__version__ = "0.1.0"
