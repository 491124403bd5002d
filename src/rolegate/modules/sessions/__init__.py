"""Login sessions and per-session role activation."""
