"""Direct-messaging web service with admin-verified accounts."""

__version__ = "0.1.0"
