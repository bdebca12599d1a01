"""Core logic for ceramic-sync: project document, configuration and remote sync."""
