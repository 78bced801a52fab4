"""Command line interface for cron workflows."""
