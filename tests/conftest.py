import pytest


@pytest.fixture
def anyio_backend() -> str:
    # The services use asyncio primitives directly (e.g. asyncio.gather).
    return "asyncio"
