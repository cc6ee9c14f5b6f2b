"""Video workflow: approval state machine and the background publish job."""
