"""
Gearshift - typed text-command dispatch for Discord bots.

Gears declare their commands in a manifest; the dispatcher parses prefixed
messages, converts arguments to the declared types, and calls the handlers.
"""

__version__ = "0.1.0"
