"""Room access portal: room roles, capability flags and invite-code lifecycle."""

__version__ = "1.0.0"
