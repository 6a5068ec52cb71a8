"""Convex devtools - live function and table discovery for a local console."""
