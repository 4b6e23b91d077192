"""REST API for the tour matching marketplace."""
