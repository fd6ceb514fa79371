# tests/test_caches.py
import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from sentinel.core.models import CreatorData
from sentinel.db.caches import BytecodeCache, CreatorCache, ScoreCache
from sentinel.db.repository import TTLRepository
from sentinel.db.stats import STATS_KEY, UsageStats
from sentinel.db.watchlist import Watchlist
from sentinel.services import clear_expired_caches, sweep_caches_forever
from sentinel.utils.cache import JsonFileStore, MemoryStore, open_store

from conftest import CREATOR, TOKEN, make_full_score


@pytest.mark.unit
class TestStores:
    @pytest.mark.asyncio
    async def test_memory_store_copies_values(self, store):
        entry = {"value": {"n": 1}, "expires_at": 10}
        await store.put("k", entry)
        entry["value"]["n"] = 2
        got = await store.get("k")
        assert got["value"]["n"] == 1
        got["value"]["n"] = 3
        assert (await store.get("k"))["value"]["n"] == 1

    @pytest.mark.asyncio
    async def test_delete_expired_keeps_undated_entries(self, store):
        await store.put("old", {"expires_at": 5})
        await store.put("new", {"expires_at": 50})
        await store.put("watchlist", {"items": {}})
        assert await store.delete_expired(10) == 1
        assert await store.get("old") is None
        assert await store.get("new") is not None
        assert await store.get("watchlist") is not None

    @pytest.mark.asyncio
    async def test_json_file_store_persists(self, tmp_path):
        path = tmp_path / "cache" / "sentinel.json"
        first = JsonFileStore(str(path))
        await first.put("score:0xabc", {"value": 1, "expires_at": 99})
        assert json.loads(path.read_text())["score:0xabc"]["value"] == 1

        second = JsonFileStore(str(path))
        assert (await second.get("score:0xabc"))["expires_at"] == 99

    def test_json_file_store_tolerates_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        assert len(JsonFileStore(str(path))) == 0

    def test_open_store_uses_env(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SENTINEL_CACHE_FILE", raising=False)
        assert type(open_store()) is MemoryStore
        monkeypatch.setenv("SENTINEL_CACHE_FILE", str(tmp_path / "c.json"))
        assert isinstance(open_store(), JsonFileStore)


@pytest.mark.unit
class TestTTLRepository:
    @pytest.mark.asyncio
    async def test_fresh_value_is_returned(self, store, clock):
        repo = TTLRepository(store, "score", ttl_ms=60_000, clock=clock)
        await repo.set("0xABC", {"x": 1})
        assert await repo.get("0xabc") == {"x": 1}
        assert (await store.get("score:0xabc"))["expires_at"] == clock.now + 60_000

    @pytest.mark.asyncio
    async def test_expired_value_is_evicted(self, store, clock):
        repo = TTLRepository(store, "score", ttl_ms=1000, clock=clock)
        await repo.set(TOKEN, {"x": 1})
        clock.now += 1000
        assert await repo.get(TOKEN) == {"x": 1}  # deadline itself is still valid
        clock.now += 1
        assert await repo.get(TOKEN) is None
        assert await store.get(f"score:{TOKEN}") is None

    @pytest.mark.asyncio
    async def test_peek_does_not_evict(self, store, clock):
        repo = TTLRepository(store, "score", ttl_ms=1000, clock=clock)
        await repo.set(TOKEN, {"x": 1})
        assert await repo.peek(TOKEN) == {"x": 1}
        clock.now += 5000
        assert await repo.peek(TOKEN) is None
        assert await store.get(f"score:{TOKEN}") is not None

    @pytest.mark.asyncio
    async def test_store_failures_degrade(self):
        broken = AsyncMock()
        broken.get.side_effect = OSError("disk gone")
        broken.put.side_effect = OSError("disk gone")
        broken.delete_expired.side_effect = OSError("disk gone")
        repo = TTLRepository(broken, "score", ttl_ms=1000)
        assert await repo.get(TOKEN) is None
        await repo.set(TOKEN, {"x": 1})
        assert await repo.clear_expired() == 0

    @pytest.mark.asyncio
    async def test_clear_expired(self, store, clock):
        repo = TTLRepository(store, "bytecode", ttl_ms=10, clock=clock)
        await repo.set("0x1", "0x60")
        await repo.set("0x2", "0x60")
        clock.now += 11
        assert await repo.clear_expired() == 2


@pytest.mark.unit
class TestTypedCaches:
    @pytest.mark.asyncio
    async def test_score_cache(self, store):
        cache = ScoreCache(store)
        score = make_full_score()
        await cache.set_score(TOKEN.upper().replace("0X", "0x"), score)
        assert await cache.get_score(TOKEN) == score
        assert await cache.peek_score(TOKEN) == score

    @pytest.mark.asyncio
    async def test_score_cache_drops_malformed(self, store, clock):
        await store.put(f"score:{TOKEN}", {"value": {"nope": 1}, "expires_at": clock.now + 10_000_000_000})
        assert await ScoreCache(store, clock=clock).get_score(TOKEN) is None

    @pytest.mark.asyncio
    async def test_creator_cache(self, store):
        cache = CreatorCache(store)
        data = CreatorData(tx_count=42, first_tx_timestamp=123, balance=10 ** 17)
        await cache.set_creator(CREATOR, data)
        assert await cache.get_creator(CREATOR) == data

    @pytest.mark.asyncio
    async def test_bytecode_cache_ttl(self, store, clock):
        cache = BytecodeCache(store, clock=clock)
        await cache.set_code(TOKEN, "0x6080")
        clock.now += 7 * 24 * 60 * 60 * 1000 + 1
        assert await cache.get_code(TOKEN) is None


@pytest.mark.unit
class TestWatchlist:
    @pytest.mark.asyncio
    async def test_crud(self, store, clock):
        wl = Watchlist(store, clock=clock)
        await wl.add("0xAAAA000000000000000000000000000000000001", "first")
        clock.now += 10
        await wl.add("0xaaaa000000000000000000000000000000000002")

        items = await wl.list()
        assert [i["address"] for i in items] == [
            "0xaaaa000000000000000000000000000000000002",
            "0xaaaa000000000000000000000000000000000001",
        ]
        assert await wl.is_watched("0xAAAA000000000000000000000000000000000001")

        assert await wl.update_label("0xaaaa000000000000000000000000000000000002", "second")
        assert (await wl.list())[0]["label"] == "second"
        assert not await wl.update_label(CREATOR, "missing")

        assert await wl.remove("0xaaaa000000000000000000000000000000000001")
        assert not await wl.remove("0xaaaa000000000000000000000000000000000001")
        assert await wl.addresses() == ["0xaaaa000000000000000000000000000000000002"]

    @pytest.mark.asyncio
    async def test_creator_is_stored_lowercase(self, store):
        wl = Watchlist(store)
        await wl.add(TOKEN, "meme", creator=CREATOR.upper().replace("0X", "0x"))
        entry = await wl.get(TOKEN.upper().replace("0X", "0x"))
        assert entry["creator"] == CREATOR
        assert entry["label"] == "meme"
        assert await wl.get(CREATOR) is None

    @pytest.mark.asyncio
    async def test_creator_defaults_to_none(self, store):
        wl = Watchlist(store)
        await wl.add(TOKEN)
        assert (await wl.get(TOKEN))["creator"] is None

    @pytest.mark.asyncio
    async def test_get_degrades_on_failure(self):
        broken = AsyncMock()
        broken.get.side_effect = OSError("gone")
        assert await Watchlist(broken).get(TOKEN) is None

    @pytest.mark.asyncio
    async def test_add_propagates_store_failure(self):
        broken = AsyncMock()
        broken.get.return_value = None
        broken.put.side_effect = OSError("read-only")
        with pytest.raises(OSError):
            await Watchlist(broken).add(TOKEN)

    @pytest.mark.asyncio
    async def test_list_degrades_on_failure(self):
        broken = AsyncMock()
        broken.get.side_effect = OSError("gone")
        assert await Watchlist(broken).list() == []


@pytest.mark.unit
class TestUsageStats:
    @pytest.mark.asyncio
    async def test_counters(self, store, clock):
        stats = UsageStats(store, clock=clock, today=lambda: "2026-10-17")
        await stats.increment_tokens_scanned()
        await stats.increment_tokens_scanned(4)
        await stats.increment_rugs_detected()
        got = await stats.get_stats()
        assert got.tokens_scanned_today == 5
        assert got.rugs_detected == 1
        assert got.last_scan_timestamp == clock.now
        assert got.current_date == "2026-10-17"

    @pytest.mark.asyncio
    async def test_resets_on_new_day(self, store):
        day = {"value": "2026-10-17"}
        stats = UsageStats(store, today=lambda: day["value"])
        await stats.increment_tokens_scanned(7)
        day["value"] = "2026-10-18"
        got = await stats.get_stats()
        assert got.tokens_scanned_today == 0
        assert got.current_date == "2026-10-18"

    @pytest.mark.asyncio
    async def test_storage_failures_are_swallowed(self):
        broken = AsyncMock()
        broken.get.side_effect = OSError("gone")
        broken.put.side_effect = OSError("gone")
        stats = UsageStats(broken, today=lambda: "2026-10-17")
        await stats.increment_rugs_detected()
        assert (await stats.get_stats()).rugs_detected == 0

    @pytest.mark.asyncio
    async def test_stored_under_one_key(self, store):
        await UsageStats(store).increment_tokens_scanned()
        assert len(store) == 1
        assert await store.get(STATS_KEY) is not None


@pytest.mark.unit
class TestCacheSweep:
    @pytest.mark.asyncio
    async def test_clear_expired_caches(self, services, store):
        await store.put(f"score:{TOKEN}", {"value": {}, "expires_at": 1})
        await store.put(f"creator:{CREATOR}", {"value": {}, "expires_at": 1})
        await store.put(f"bytecode:{TOKEN}", {"value": "0x60", "expires_at": 1})
        await services.watchlist.add(TOKEN)
        assert await clear_expired_caches(services) == 3
        assert await store.get(f"score:{TOKEN}") is None
        assert await services.watchlist.is_watched(TOKEN)

    @pytest.mark.asyncio
    async def test_sweep_runs_until_cancelled(self, services, store):
        await store.put(f"bytecode:{TOKEN}", {"value": "0x60", "expires_at": 1})
        task = asyncio.create_task(sweep_caches_forever(services, interval=0.01))
        await asyncio.sleep(0.05)
        assert await store.get(f"bytecode:{TOKEN}") is None
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
