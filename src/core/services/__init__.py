"""Pipeline services: diff, classification, dispatch and orchestration."""
