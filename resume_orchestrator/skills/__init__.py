"""Prompt templates for the orchestrator and the specialized agents."""
