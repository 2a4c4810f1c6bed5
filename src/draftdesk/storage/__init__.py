"""File-based persistence for generated draft batches."""
