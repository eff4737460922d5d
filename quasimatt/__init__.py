"""
Ask Quasimatt: a small question/answer service.

This package provides a FastAPI application over a SQL store for questions
and threaded responses, the single-page UI and service worker it serves, and
the posts manifest builder used by the static site.
"""
