"""API subpackage - FastAPI surface for the host application."""
