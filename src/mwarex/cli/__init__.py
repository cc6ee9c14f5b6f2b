"""MwareX command-line interface."""
