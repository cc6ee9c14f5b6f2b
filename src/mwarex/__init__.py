"""MwareX - video approval and YouTube publishing backend."""
