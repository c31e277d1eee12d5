"""Command-line interface for Exhibit Desk."""
