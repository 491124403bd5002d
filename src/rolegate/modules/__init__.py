"""Authorization domain modules."""
