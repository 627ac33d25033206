"""prolink: connection and invitation core for the ProLink network."""

__version__ = "0.1.0"
