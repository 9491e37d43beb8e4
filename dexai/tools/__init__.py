"""Data tools and the registry the classifier routes to."""
