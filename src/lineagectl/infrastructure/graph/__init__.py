"""NetworkX-backed graph construction and hierarchical layout."""
