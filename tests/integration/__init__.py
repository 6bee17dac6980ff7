"""Integration tests running the scenario through Locust against stub services."""
