"""kratt: automated pull request processing with AI coding agents."""

__version__ = "0.3.0"
