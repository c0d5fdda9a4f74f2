pytest_plugins = [
    "funchost.testing.pytest.fixtures",
]
