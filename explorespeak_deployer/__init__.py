"""Idempotent AWS provisioning for the ExploreSpeak backend."""

__version__ = "0.1.0"
