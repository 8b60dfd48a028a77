"""Game domain services: suit dealing, round resolution, phases and timers.

This package contains the game mechanics that HTTP routes and socket
handlers import, keeping transport concerns separated from the rules.
"""
