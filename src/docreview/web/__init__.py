"""Web package for the document review API.

This package contains the FastAPI application that exposes review
assignments over HTTP: listing, direct status writes used by remote
stores, and the single-flight toggle endpoint used by the UI.

To start the web server from the CLI use:
    docreview serve --port 8000
"""
