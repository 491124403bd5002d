"""Cross-cutting infrastructure: errors, logging and background jobs."""
