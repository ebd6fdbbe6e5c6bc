"""Report writers for clustering and search results."""
