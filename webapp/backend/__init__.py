"""
Backend package for the plant treatment web application.

This package exposes a FastAPI application that reuses the
`plant_treatment` generator to answer treatment requests over HTTP.
"""
