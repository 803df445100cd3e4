"""
Test suite for the campus marketplace backend.

- unit/: pure functions (UPI URLs, transition table, error envelope, retries)
- integration/: API-level tests against the test database
"""
