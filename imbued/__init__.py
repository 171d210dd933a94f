"""
imbued

Local daemon that gates access to secrets and injects them into a
caller's shell environment, scoped by `.imbued` project files.
"""

__version__ = "0.1.0"
