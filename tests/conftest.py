from __future__ import annotations

import logging

import pytest

from tests._fixtures.request_builder import RequestBuilder, build_echo_request


@pytest.fixture
def request_builder() -> RequestBuilder:
    """Provide an empty request builder."""
    return RequestBuilder()


@pytest.fixture
def echo_builder() -> RequestBuilder:
    """Provide a builder pre-populated with the annotated echo service."""
    return build_echo_request()


@pytest.fixture(autouse=True)
def _reset_plugin_logger():
    yield
    logger = logging.getLogger("protoc_gen_swagger")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
