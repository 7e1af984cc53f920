"""ScaleX CLI commands."""
