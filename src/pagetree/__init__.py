"""pagetree - hierarchical pages with cached path resolution."""
