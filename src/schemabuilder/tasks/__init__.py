"""Background worker tasks."""
