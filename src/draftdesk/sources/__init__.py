"""Source connectors, relevance scoring and collection."""
