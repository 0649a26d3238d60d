"""Multi-agent task orchestrator for an AI resume builder."""

__version__ = "0.1.0"
