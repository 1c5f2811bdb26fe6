"""HCO backend: administrator sessions for the HCO website API."""

__version__ = "0.1.0"
