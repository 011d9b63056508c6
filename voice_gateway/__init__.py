"""Voice Gateway: voice and text commands to home automation actions."""

__version__ = "0.1.0"
