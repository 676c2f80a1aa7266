"""Tests for the MySQLAuthState facade against a SQLite file."""

import asyncio

import pytest
import pytest_asyncio

from mysql_auth_state import (
    AppStateSyncKeyData,
    KeyCategory,
    MySQLAuthState,
    use_mysql_auth_state,
)
from mysql_auth_state.keys import CREDS_KEY


@pytest_asyncio.fixture
async def auth(settings):
    store = await MySQLAuthState.open(settings)
    yield store
    await store.close()


async def _reopen(settings) -> MySQLAuthState:
    return await MySQLAuthState.open(settings)


class TestOpen:
    @pytest.mark.asyncio
    async def test_empty_table_yields_fresh_credentials(self, auth):
        creds = auth.state.creds

        assert auth.creds_persisted is False
        assert creds["registered"] is False
        assert len(creds["noiseKey"]["public"]) == 32
        assert await auth.list_ids() == []

    @pytest.mark.asyncio
    async def test_saved_credentials_are_loaded_on_reopen(self, settings, auth):
        await auth.save_creds()
        saved = auth.state.creds

        reopened = await _reopen(settings)
        try:
            assert reopened.creds_persisted is True
            assert reopened.state.creds == saved
        finally:
            await reopened.close()

    @pytest.mark.asyncio
    async def test_custom_creds_factory(self, settings):
        async with await MySQLAuthState.open(
            settings,
            creds_factory=lambda: {"me": {"id": "1@s.whatsapp.net"}},
        ) as store:
            assert store.state.creds["me"] == {"id": "1@s.whatsapp.net"}

    @pytest.mark.asyncio
    async def test_use_mysql_auth_state_with_overrides(self, sqlite_url):
        async with await use_mysql_auth_state(
            url=sqlite_url,
            table_name="session_1",
        ) as store:
            await store.save_creds()
            rows = await store.query("SELECT id FROM session_1")

        assert rows == [{"id": CREDS_KEY}]

    @pytest.mark.asyncio
    async def test_context_manager_closes_connection(self, settings):
        async with await MySQLAuthState.open(settings) as store:
            connections = store._connections
            assert connections.is_connected is True

        assert connections.is_connected is False


class TestSaveCreds:
    @pytest.mark.asyncio
    async def test_mutated_credentials_are_saved(self, settings, auth):
        auth.state.creds["registered"] = True
        auth.state.creds["me"] = {"id": "1@s.whatsapp.net"}

        await auth.save_creds()

        reopened = await _reopen(settings)
        try:
            assert reopened.state.creds["registered"] is True
            assert reopened.state.creds["me"] == {"id": "1@s.whatsapp.net"}
        finally:
            await reopened.close()


class TestKeys:
    @pytest.mark.asyncio
    async def test_set_then_get(self, auth):
        await auth.state.keys.set(
            {
                "pre-key": {
                    "1": {"public": b"\x01" * 32, "private": b"\x02" * 32},
                    "2": {"public": b"\x03" * 32, "private": b"\x04" * 32},
                },
            },
        )

        keys = await auth.state.keys.get("pre-key", ["1", "2", "3"])

        assert keys == {
            "1": {"public": b"\x01" * 32, "private": b"\x02" * 32},
            "2": {"public": b"\x03" * 32, "private": b"\x04" * 32},
            "3": None,
        }
        assert await auth.list_ids() == ["pre-key-1", "pre-key-2"]

    @pytest.mark.asyncio
    async def test_absent_value_deletes_row(self, auth):
        await auth.state.keys.set({"session": {"abc": b"\x01"}})

        await auth.state.keys.set({"session": {"abc": None}})

        assert await auth.state.keys.get("session", ["abc"]) == {"abc": None}
        assert await auth.list_ids() == []

    @pytest.mark.asyncio
    async def test_empty_bytes_are_stored(self, auth):
        await auth.state.keys.set({"sender-key": {"g1": b""}})

        assert await auth.state.keys.get("sender-key", ["g1"]) == {"g1": b""}
        assert await auth.list_ids() == ["sender-key-g1"]

    @pytest.mark.asyncio
    async def test_app_state_sync_key_is_typed(self, auth):
        key = AppStateSyncKeyData(
            key_data=b"\x09" * 32,
            fingerprint={"rawId": 7, "currentIndex": 1, "deviceIndexes": [0, 1]},
            timestamp=1700000000,
        )
        await auth.state.keys.set({KeyCategory.APP_STATE_SYNC_KEY: {"AAAAAP7f": key}})

        result = await auth.state.keys.get(KeyCategory.APP_STATE_SYNC_KEY, ["AAAAAP7f"])

        loaded = result["AAAAAP7f"]
        assert isinstance(loaded, AppStateSyncKeyData)
        assert loaded == key

    @pytest.mark.asyncio
    async def test_other_categories_stay_plain(self, auth):
        await auth.state.keys.set(
            {"app-state-sync-version": {"regular": {"version": 3}}},
        )

        result = await auth.state.keys.get("app-state-sync-version", ["regular"])

        assert result == {"regular": {"version": 3}}

    @pytest.mark.asyncio
    async def test_unknown_category_is_rejected(self, auth):
        with pytest.raises(ValueError):
            await auth.state.keys.get("not-a-category", ["1"])

    @pytest.mark.asyncio
    async def test_concurrent_writes_are_all_stored(self, auth):
        await asyncio.gather(
            *(
                auth.state.keys.set({"session": {str(i): {"counter": i}}})
                for i in range(20)
            ),
        )

        ids = [str(i) for i in range(20)]
        result = await auth.state.keys.get("session", ids)

        assert result == {str(i): {"counter": i} for i in range(20)}


class TestLifecycle:
    @pytest_asyncio.fixture
    async def populated(self, auth):
        await auth.save_creds()
        await auth.state.keys.set(
            {"pre-key": {"1": b"\x01"}, "sender-key-memory": {"g": {"a": True}}},
        )
        return auth

    @pytest.mark.asyncio
    async def test_clear_keeps_credentials(self, populated):
        await populated.clear()

        assert await populated.list_ids() == [CREDS_KEY]
        assert populated.creds_persisted is True

    @pytest.mark.asyncio
    async def test_remove_creds_removes_everything(self, settings, populated):
        await populated.remove_creds()

        assert await populated.list_ids() == []
        assert populated.creds_persisted is False

        reopened = await _reopen(settings)
        try:
            assert reopened.creds_persisted is False
        finally:
            await reopened.close()

    @pytest.mark.asyncio
    async def test_drop_table_twice(self, populated):
        await populated.drop_table()
        await populated.drop_table()

        rows = await populated.query(
            "SELECT name FROM sqlite_master WHERE type = 'table'",
        )
        assert rows == []
        assert populated.creds_persisted is False

    @pytest.mark.asyncio
    async def test_operations_report_success(self, populated):
        assert await populated.save_creds() is True
        assert await populated.clear() is True
        assert await populated.remove_creds() is True
        assert await populated.drop_table() is True

    @pytest.mark.asyncio
    async def test_operations_without_table_report_failure(self, populated):
        """Once the table is gone every statement exhausts its retries."""
        await populated.drop_table()

        assert await populated.save_creds() is False
        assert populated.creds_persisted is False
        assert await populated.clear() is False
        assert await populated.remove_creds() is False

    @pytest.mark.asyncio
    async def test_reopen_after_drop_recreates_table(self, settings, populated):
        await populated.drop_table()

        reopened = await _reopen(settings)
        try:
            await reopened.save_creds()
            assert await reopened.list_ids() == [CREDS_KEY]
        finally:
            await reopened.close()


class TestQuery:
    @pytest.mark.asyncio
    async def test_query_with_parameters(self, auth):
        await auth.state.keys.set(
            {"tctoken": {"a": {"token": "x"}, "b": {"token": "y"}}},
        )

        rows = await auth.query(
            "SELECT id FROM auth WHERE id = :id",
            {"id": "tctoken-b"},
        )

        assert rows == [{"id": "tctoken-b"}]

    @pytest.mark.asyncio
    async def test_failing_query_returns_empty_rows(self, auth):
        rows = await auth.query("SELECT * FROM no_such_table")

        assert rows == []
