"""Pytest configuration and shared fixtures."""

from hypothesis import settings

# Create a profile named "no_deadline" with deadline disabled.
#
# Native library loading makes the first example of a run much slower
# than the rest, which trips hypothesis' per-example deadline.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
