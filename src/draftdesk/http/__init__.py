"""HTTP access shared by connectors and URL verification."""
