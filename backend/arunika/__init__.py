"""Application package for the Arunika career-guidance API.

This package exposes the request pipeline, ownership policy, repository
and identity modules used by the FastAPI application. Individual
modules contain the concrete implementations and documentation.
"""
