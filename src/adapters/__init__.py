"""Adapters around external tools (git, package managers, files)."""
