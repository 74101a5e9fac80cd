"""hitcut: render a project up to each cut marker, then trim renders to note onsets."""

__version__ = "0.1.0"
