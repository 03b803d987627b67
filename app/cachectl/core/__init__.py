"""Core services for cachectl: paths, settings, scanning and tool discovery."""
