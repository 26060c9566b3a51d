"""Digest formatting: durations and the HTML topics email."""
