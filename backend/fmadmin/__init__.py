"""FileMaker Server admin settings synchronization client."""

__version__ = "1.0.0"
