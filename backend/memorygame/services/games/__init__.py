"""Game domain services: board dealing, room registry, turn rules, timers.

This package contains pure(ish) domain logic that is driven by the socket
handlers, keeping transport concerns separated from core game mechanics.
"""
