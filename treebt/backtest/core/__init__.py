"""
Core contracts

Defines WHAT every handler must answer, independent of any implementation.

Invariants:
- Handlers never touch the event queue; they only return the successor event.
- Returning None is a deliberate decline, never an error.
- Raising aborts the whole run.
"""
