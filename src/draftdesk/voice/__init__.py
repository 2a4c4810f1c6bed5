"""Voice profile loading and analysis."""
