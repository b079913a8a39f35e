"""CLI command groups for ecce."""
