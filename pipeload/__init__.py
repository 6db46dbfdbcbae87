"""pipeload: stream custom-delimited text files into per-file SQLite tables."""

__version__ = "0.1.0"
