"""Scoring engine: URL and file heuristics plus optional reputation lookups."""
