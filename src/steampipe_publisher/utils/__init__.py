"""Threading and observer utilities."""
