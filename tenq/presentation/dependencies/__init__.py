"""FastAPI dependencies: authentication, permissions, admission control."""
