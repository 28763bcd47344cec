"""Lead sheet core: aligned melody, chord symbols and lyrics for rendering backends."""

__version__ = "0.1.0"
