"""Services Layer — orchestration between controllers and repositories."""
