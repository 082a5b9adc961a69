"""
Client Composition Root.

Builds a NoteStore wired to the HTTP gateway from config/settings/client.yaml
and the server address in application.yaml.

Usage:
    store = create_note_store()
    await store.fetch_page()
    ...
    await store.aclose()
"""

import httpx

from notecore.backend.core.config import get_app_config, get_server_base_url
from notecore.client.api import NotesClient
from notecore.client.autosave import AutosavePolicy
from notecore.client.store import NoteStore


def autosave_policy_from_config() -> AutosavePolicy:
    autosave = get_app_config().client.autosave
    return AutosavePolicy(
        quiet_window=autosave.quiet_window_seconds,
        max_attempts=autosave.max_attempts,
        retry_delays=tuple(autosave.retry_delays_seconds),
    )


def create_note_store(
    base_url: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> NoteStore:
    """
    Create a store talking to the configured server.

    Args:
        base_url: Override for the server address in application.yaml
        http_client: Preconfigured httpx client (base_url is then ignored)
    """
    app_config = get_app_config()
    config_base_url, timeout = get_server_base_url()

    gateway = NotesClient(
        base_url or config_base_url,
        timeout,
        api_prefix=app_config.application.api_prefix,
        http_client=http_client,
    )
    return NoteStore(
        gateway,
        page_size=app_config.client.page_size,
        autosave=autosave_policy_from_config(),
    )
