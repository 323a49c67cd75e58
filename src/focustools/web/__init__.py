"""Web API for FocusTools."""
