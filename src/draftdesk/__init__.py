"""Post drafting pipeline: sources in, voice-matched drafts out."""

__version__ = "0.3.0"
