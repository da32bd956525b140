"""BlissNexus: a living world of five autonomous rulers.

Rulers evolve under an economy, random events and their own free-text
decisions; viewers whisper to them, earn influence and watch the world
through a trust-based fog of war.
"""

__version__ = "0.1.0"
