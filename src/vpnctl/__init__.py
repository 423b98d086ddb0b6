"""VPN client controller with self-update and bounded recovery."""

__version__ = "1.0.5"
