"""CLI module for gcptools."""
