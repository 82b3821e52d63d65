"""Discord cogs for Hookcord."""
