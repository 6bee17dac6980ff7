"""
Test suite for the collaboration load test.

This package contains:
- unit/: workflow, check tally and threshold tests against a fake session
- integration/: a real Locust environment driving in-process stub services
"""
