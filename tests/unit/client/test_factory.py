"""Unit tests for building a store from configuration."""

import httpx
import pytest

from notecore.backend.core.config import get_app_config
from notecore.client.api import NotesClient
from notecore.client.autosave import AutosavePolicy
from notecore.client.factory import autosave_policy_from_config, create_note_store


class TestFactory:
    def test_policy_matches_client_yaml(self):
        assert autosave_policy_from_config() == AutosavePolicy(
            quiet_window=1.0,
            max_attempts=3,
            retry_delays=(1.0, 3.0),
        )

    @pytest.mark.asyncio
    async def test_store_wired_from_config(self):
        http = httpx.AsyncClient(base_url="http://notes.test")
        store = create_note_store(http_client=http)

        assert isinstance(store.gateway, NotesClient)
        assert store.page_size == get_app_config().client.page_size
        assert store.scheduler.policy == autosave_policy_from_config()

        await store.aclose()
        assert http.is_closed
