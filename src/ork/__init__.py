"""ORK - gated build pipeline orchestrator and UI checklist runner."""

__version__ = "1.2.0"
