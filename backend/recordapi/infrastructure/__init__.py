"""Infrastructure Layer — store connection and logging setup."""
