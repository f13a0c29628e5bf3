"""
Reusable mocks and fakes for relay tests.

Connection handle doubles live here so registry, session and endpoint
tests drive the same fakes.
"""
