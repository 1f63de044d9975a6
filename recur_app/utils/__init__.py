"""
Utility functions module.

Time Semantics:
- Stored instants are ALWAYS absolute and normalised to UTC
- Day counting happens on local calendar dates, never on elapsed duration
- "Local" means the process time zone unless a zone is passed explicitly
- Each instant is converted with the UTC offset in force on its own date
"""
