"""Discord bot service: gateway client, webhook listener and admin commands."""
