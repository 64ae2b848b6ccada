"""Configuration: settings, logging, command catalog, permissions."""
