"""Runtime support: the local model asset cache."""
