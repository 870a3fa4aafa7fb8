"""Boost tracking core and host-side services for the Extra Info Bar plugin."""
