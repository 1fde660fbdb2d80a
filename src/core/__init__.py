"""Core: domain models, configuration and the sync pipeline."""
