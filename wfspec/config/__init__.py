"""Runtime configuration for wfspec."""
