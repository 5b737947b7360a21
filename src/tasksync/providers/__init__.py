"""Remote tracker integrations."""
