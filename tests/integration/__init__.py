"""Integration test package.

These tests exercise the review API, the HTTP store client and the CLI
end to end.  Everything runs in-process; no network access is needed.
"""
