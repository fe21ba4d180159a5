"""zprof: isolated zsh profiles, with a safety net for the user's original shell files."""

__version__ = "0.4.0"
