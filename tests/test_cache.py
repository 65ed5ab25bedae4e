"""
Test cache backends and the typed cache facade
"""
import pytest

from flix.core.cache import (
    MemoryCacheBackend,
    RedisCacheBackend,
    TypedCache,
    featured_list,
    make_cache_backend,
    video_detail,
    video_list,
    video_stream,
    video_thumbnail,
)
from flix.features.videos.schemas import VideoRecord, VideoSummary


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value.encode("utf-8")
        self.ttls[key] = ttl

    def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)


def make_record(video_id=1, **overrides):
    fields = dict(
        id=video_id,
        title="Sintel",
        genre="Fantasy",
        duration=888,
        year=2010,
        is_featured=False,
        video_key="videos/sintel.mp4",
        thumbnail_key="thumbnails/sintel.jpg",
    )
    fields.update(overrides)
    return VideoRecord(**fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def typed(clock):
    return TypedCache(MemoryCacheBackend(clock=clock))


# -----------------------------
# Keys
# -----------------------------
def test_key_names_and_ttls():
    assert video_list().name == "videos.all"
    assert video_list().ttl == 300
    assert featured_list().name == "videos.featured"
    assert featured_list().ttl == 3600
    assert video_detail(7).name == "video.7"
    assert video_detail(7).ttl == 1800
    assert video_stream(7).name == "video_stream.7"
    assert video_thumbnail(7).name == "video_thumbnail.7"
    assert video_thumbnail(7).ttl == 3600


# -----------------------------
# Memory backend
# -----------------------------
def test_memory_backend_expires_entries(clock):
    backend = MemoryCacheBackend(clock=clock)
    backend.set("k", "v", ttl=10)
    assert backend.get("k") == "v"

    clock.advance(9)
    assert backend.get("k") == "v"

    clock.advance(1)
    assert backend.get("k") is None


def test_memory_backend_delete_and_clear(clock):
    backend = MemoryCacheBackend(clock=clock)
    backend.set("a", "1", ttl=10)
    backend.set("b", "2", ttl=10)
    backend.delete("a", "missing")
    assert backend.get("a") is None
    assert backend.get("b") == "2"
    backend.clear()
    assert backend.get("b") is None


# -----------------------------
# Typed facade
# -----------------------------
def test_get_or_compute_computes_once(typed):
    calls = []

    def compute():
        calls.append(1)
        return make_record()

    first = typed.get_or_compute(video_detail(1), compute)
    second = typed.get_or_compute(video_detail(1), compute)

    assert len(calls) == 1
    assert isinstance(second, VideoRecord)
    assert second == first


def test_values_are_typed_on_read(typed):
    summaries = [VideoSummary.model_validate(make_record(i).model_dump()) for i in (1, 2)]
    typed.set(video_list(), summaries)

    cached = typed.get(video_list())
    assert [s.id for s in cached] == [1, 2]
    assert all(isinstance(s, VideoSummary) for s in cached)


def test_empty_list_is_a_cache_hit(typed):
    typed.set(video_list(), [])
    calls = []
    assert typed.get_or_compute(video_list(), lambda: calls.append(1) or [make_record()]) == []
    assert calls == []


def test_get_or_compute_recomputes_after_ttl(typed, clock):
    typed.get_or_compute(video_list(), lambda: [])
    clock.advance(video_list().ttl + 1)
    value = typed.get_or_compute(
        video_list(),
        lambda: [VideoSummary.model_validate(make_record().model_dump())],
    )
    assert len(value) == 1


def test_compute_error_is_not_cached(typed):
    def boom():
        raise LookupError("missing")

    with pytest.raises(LookupError):
        typed.get_or_compute(video_detail(3), boom)

    assert typed.get(video_detail(3)) is None
    assert typed.get_or_compute(video_detail(3), lambda: make_record(3)).id == 3


def test_unreadable_entry_is_a_miss(typed, caplog):
    typed.backend.set(video_detail(1).name, '{"not": "a video"}', ttl=60)

    with caplog.at_level("WARNING", logger="flix.core.cache"):
        assert typed.get(video_detail(1)) is None

    assert "unreadable" in caplog.text
    assert typed.backend.get(video_detail(1).name) is None


def test_invalidate_video_drops_lists_and_per_video_keys(typed):
    for key in (video_detail(1), video_stream(1), video_thumbnail(1), video_detail(2)):
        typed.set(key, make_record(int(key.name.rsplit(".", 1)[1])))
    typed.set(video_list(), [])
    typed.set(featured_list(), [])

    typed.invalidate_video(1)

    assert typed.get(video_list()) is None
    assert typed.get(featured_list()) is None
    assert typed.get(video_detail(1)) is None
    assert typed.get(video_stream(1)) is None
    assert typed.get(video_thumbnail(1)) is None
    # les autres vidéos ne sont pas touchées
    assert typed.get(video_detail(2)).id == 2


def test_invalidate_without_id_only_drops_lists(typed):
    typed.set(video_detail(1), make_record())
    typed.set(video_list(), [])
    typed.invalidate_video()
    assert typed.get(video_list()) is None
    assert typed.get(video_detail(1)) is not None


# -----------------------------
# Redis backend
# -----------------------------
def test_redis_backend_prefixes_keys_and_sets_ttl():
    redis_client = FakeRedis()
    cache = TypedCache(RedisCacheBackend(redis_client))

    cache.set(video_detail(5), make_record(5))

    assert "flix:video.5" in redis_client.data
    assert redis_client.ttls["flix:video.5"] == 1800
    # bytes relus (client sans decode_responses) : décodés par le backend
    assert cache.get(video_detail(5)).id == 5

    cache.invalidate_video(5)
    assert "flix:video.5" not in redis_client.data


def test_make_cache_backend_defaults_to_memory():
    assert isinstance(make_cache_backend(""), MemoryCacheBackend)
