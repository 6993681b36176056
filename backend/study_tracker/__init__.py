"""Application package for the study tracker backend.

This package exposes the timer, service, repository and model modules
used by the FastAPI application and the command-line scripts. It is
intentionally lightweight; individual modules contain the concrete
implementations and documentation.
"""
