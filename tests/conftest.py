from collections.abc import Callable

import pytest

from handoff.handle import InteractionHandle
from tests.fakes import FakeInteractionClient


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_client() -> FakeInteractionClient:
    return FakeInteractionClient()


@pytest.fixture
def make_handle(
    fake_client: FakeInteractionClient,
) -> Callable[..., InteractionHandle]:
    def _factory(*, track_last_message: bool = False) -> InteractionHandle:
        return InteractionHandle(
            fake_client, 1, "tok", track_last_message=track_last_message
        )

    return _factory
