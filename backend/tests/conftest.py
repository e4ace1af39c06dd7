"""Shared pytest configuration."""

import logfire
import pytest


def pytest_configure(config):
    # Pipeline spans become local no-ops
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "events").mkdir()
    (tmp_path / "predictions").mkdir()
    return tmp_path
