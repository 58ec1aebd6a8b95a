"""
Bundled gears.

Each gear is an object with a `manifest` describing its commands; the
registry binds the listed handlers to the gear instance.
"""
