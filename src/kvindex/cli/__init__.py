"""Command-line interface for inspecting stored statistics and pages."""
