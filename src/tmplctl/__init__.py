"""tmplctl — find terminology concepts that conform to a logical template."""

__version__ = "0.3.0"
