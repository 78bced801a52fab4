"""Configuration and logging shared by the cron workflow entry points."""
