"""
nerdfont-cli: a concurrent installer for Nerd Fonts release packages.
"""

__version__ = "0.4.0"
