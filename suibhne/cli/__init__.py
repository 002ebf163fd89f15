"""Command-line interface for Suibhne."""
