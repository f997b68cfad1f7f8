"""Appliance waveform synthesis, health classification and identity detection."""

__version__ = "0.1.0"
