"""Prompt construction, generation backend calls and response repair."""
