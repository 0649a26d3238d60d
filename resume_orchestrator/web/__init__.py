"""HTTP API exposing the orchestrator to the UI layer."""
