"""Core application plumbing: configuration, errors, lifecycle, middleware."""
