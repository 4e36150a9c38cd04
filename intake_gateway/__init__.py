"""Legal intake gateway: one-time case credentials, rate-limited validation and case reports."""

__version__ = "0.1.0"
