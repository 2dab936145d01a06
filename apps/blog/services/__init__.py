"""
Service layer shared by the REST API and the server-rendered pages.

Functions here take the acting user explicitly, enforce ownership and keep
the denormalized counters on posts and comments in step with the rows they
summarize. Errors are raised as DRF API exceptions.
"""
