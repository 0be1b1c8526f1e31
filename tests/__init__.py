"""Test suite for the document review workflow.

This package contains unit tests for the assignment model, the store
backends and the toggle controller, plus integration tests for the HTTP
API, the HTTP store client and the CLI. To run the tests, execute
`pytest` from the project root.
"""
