"""Business logic behind the HTTP routers."""
