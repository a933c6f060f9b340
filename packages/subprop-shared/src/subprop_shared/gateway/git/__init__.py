"""Git gateway."""
