"""Web API for the users service."""
