"""prmerge -- merge pull requests from a ``/merge`` comment."""

__version__ = "0.1.0"
