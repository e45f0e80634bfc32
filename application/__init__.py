"""
Application Layer for workout scoring.

This package contains:
- ports/: Abstract repository interfaces (what the scoring services need)
- use_cases/: Workflows that score, repair and backfill workouts
- exceptions.py: Errors raised by adapters
"""
