"""Lead Automation Governance API."""

__version__ = "0.1.0"
