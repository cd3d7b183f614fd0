"""Pytest configuration for the finance-engine test suite."""

# MCP server handlers are coroutines; their tests are marked with @pytest.mark.asyncio
pytest_plugins = ('pytest_asyncio',)


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )
