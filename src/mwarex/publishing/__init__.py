"""YouTube publishing: OAuth credentials and the upload adapter."""
