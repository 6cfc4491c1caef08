"""API routers for the category manager."""
