import threading
import time
from datetime import date
from unittest.mock import MagicMock, call

import responses

from rankboard.config import EnrichmentConfig, TmdbConfig
from rankboard.enrichment import EnrichmentService
from rankboard.enrichment.limiter import ConcurrencyLimiter
from rankboard.enrichment.misses import MissLog
from rankboard.enrichment.posters import KOREAN_FALLBACK
from rankboard.enrichment.service import image_ref, to_metadata
from rankboard.enrichment.tmdb_client import TmdbClient
from rankboard.models import Category, LanguageClass, PopularRow, RankedItem
from rankboard.storage.cache import EphemeralCache


def _item(rank, title, category=Category.FILM):
    return RankedItem(
        rank=rank,
        title=title,
        category=category,
        language=LanguageClass.ENGLISH,
        views=100,
        hours_viewed=50,
        weeks_in_top_10=1,
        period_start=date(2025, 1, 6),
        period_end=date(2025, 1, 12),
    )


def _service(client, enabled=True, workers=4):
    return EnrichmentService(
        client,
        MissLog(),
        EnrichmentConfig(enabled=enabled, workers=workers),
        ("ko-KR", "en-US"),
    )


class TestToMetadata:
    def test_poster_and_localized_title(self):
        meta = to_metadata(
            {
                "id": 1,
                "title": "레드 노티스",
                "original_title": "Red Notice",
                "poster_path": "/red notice.jpg",
                "release_date": "2021-11-04",
                "overview": "An FBI profiler...",
            },
            "movie",
        )
        assert meta.poster_ref == "/api/image?size=w342&path=%2Fred%20notice.jpg"
        assert meta.localized_title == "레드 노티스"
        assert meta.media_type == "movie"
        assert meta.release_year == 2021
        assert meta.overview == "An FBI profiler..."

    def test_backdrop_used_without_poster(self):
        meta = to_metadata({"name": "Harbin", "backdrop_path": "/b.jpg"}, "tv")
        assert meta.poster_ref == image_ref("/b.jpg", "w780")
        assert meta.localized_title == "Harbin"

    def test_multi_endpoint_media_type(self):
        assert to_metadata({"media_type": "tv"}, "multi").media_type == "tv"
        assert to_metadata({}, "multi").media_type is None

    def test_missing_fields(self):
        meta = to_metadata({"original_name": "Ad Vitam", "first_air_date": ""}, "tv")
        assert meta.poster_ref is None
        assert meta.localized_title == "Ad Vitam"
        assert meta.release_year is None
        assert meta.overview is None


class TestResolveMetadata:
    def test_search_order(self):
        client = MagicMock()
        client.search.return_value = None
        service = _service(client)

        assert service.resolve_metadata("Squid Game: Season 2", Category.SERIES) is None
        assert client.search.call_args_list[:4] == [
            call("Squid Game: Season 2", "ko-KR", "tv"),
            call("Squid Game:", "ko-KR", "tv"),
            call("Squid Game", "ko-KR", "tv"),
            call("Squid Game: Season 2", "en-US", "tv"),
        ]
        assert client.search.call_args_list[-1] == call("Squid Game", "en-US", "multi")
        assert client.search.call_count == 12

    def test_stops_at_first_hit(self):
        client = MagicMock()
        client.search.side_effect = (
            lambda query, language, endpoint:
            {"title": "Carry-On", "poster_path": "/c.jpg"} if language == "en-US" else None
        )
        service = _service(client)

        meta = service.resolve_metadata("Carry-On", Category.FILM)
        assert meta.localized_title == "Carry-On"
        assert meta.media_type == "movie"
        assert client.search.call_args_list == [
            call("Carry-On", "ko-KR", "movie"),
            call("Carry", "ko-KR", "movie"),
            call("Carry-On", "en-US", "movie"),
        ]


class TestEnrich:
    def test_hits_attach_metadata_without_renaming(self):
        client = MagicMock()
        client.search.return_value = {"title": "오징어 게임", "poster_path": "/sq.jpg"}
        service = _service(client)

        enriched = service.enrich_items([_item(1, "Squid Game", Category.SERIES)])
        assert enriched[0].title == "Squid Game"
        assert enriched[0].localized_title == "오징어 게임"
        assert enriched[0].poster_ref == image_ref("/sq.jpg", "w342")

    def test_hit_without_image_uses_local_poster(self):
        client = MagicMock()
        client.search.return_value = {"title": "Red Notice"}
        service = _service(client)

        enriched = service.enrich_items([_item(1, "Red Notice")])
        assert enriched[0].poster_ref == "/red-notice-poster.jpg"

    def test_misses_fall_back_and_are_recorded(self):
        client = MagicMock()
        client.search.return_value = None
        service = _service(client)

        enriched = service.enrich_items([_item(1, "흑백요리사"), _item(2, "Wednesday")])
        assert enriched[0].poster_ref == KOREAN_FALLBACK
        assert enriched[1].poster_ref is None
        assert enriched[0].localized_title is None
        titles = [miss["title"] for miss in service._miss_log.report()]
        assert sorted(titles) == ["Wednesday", "흑백요리사"]

    def test_only_head_is_looked_up_and_order_kept(self):
        client = MagicMock()
        client.search.side_effect = lambda query, language, endpoint: {"title": query.upper()}
        service = _service(client)
        items = [_item(i, f"Title {i}") for i in range(1, 8)]

        enriched = service.enrich(items, limit=3)
        assert [item.rank for item in enriched] == list(range(1, 8))
        assert [item.localized_title for item in enriched[:3]] == [
            "TITLE 1",
            "TITLE 2",
            "TITLE 3",
        ]
        assert all(item.localized_title is None for item in enriched[3:])
        searched = {c.args[0] for c in client.search.call_args_list}
        assert searched == {"Title 1", "Title 2", "Title 3"}
        assert service._miss_log.report() == []

    def test_disabled_makes_no_calls(self):
        client = MagicMock()
        service = _service(client, enabled=False)

        enriched = service.enrich_items([_item(1, "Squid Game")])
        client.search.assert_not_called()
        assert enriched[0].poster_ref == "/generic-survival-game-poster.png"

    def test_popular_rows(self):
        client = MagicMock()
        client.search.return_value = {"name": "웬즈데이", "poster_path": "/w.jpg"}
        service = _service(client)
        row = PopularRow(
            title="Wednesday: Season 1",
            category=Category.SERIES,
            language=LanguageClass.ENGLISH,
            views_91d=252_100_000,
            hours_91d=1_237_150_000,
        )

        enriched = service.enrich_popular_rows([row], limit=10)
        assert enriched[0].localized_title == "웬즈데이"
        assert enriched[0].to_document()["poster"] == image_ref("/w.jpg", "w342")
        assert row.localized_title is None

    def test_empty(self):
        assert _service(MagicMock()).enrich([]) == []


class TestConcurrencyBound:
    @responses.activate
    def test_no_more_than_five_searches_in_flight(self):
        lock = threading.Lock()
        active = 0
        observed = []

        def slow_search(request):
            nonlocal active
            with lock:
                active += 1
                observed.append(active)
            time.sleep(0.02)
            with lock:
                active -= 1
            return 200, {}, '{"results": [{"title": "found"}]}'

        responses.add_callback(
            responses.GET,
            "https://api.themoviedb.org/3/search/movie",
            callback=slow_search,
            content_type="application/json",
        )

        config = TmdbConfig(bearer_token="v4token", max_concurrent=5)
        limiter = ConcurrencyLimiter(config.max_concurrent)
        client = TmdbClient(config, EphemeralCache(), limiter)
        service = _service(client, workers=12)

        items = [_item(i, f"Film {i}") for i in range(1, 13)]
        enriched = service.enrich(items, limit=12)

        assert len(observed) == 12
        assert max(observed) <= 5
        assert limiter.peak <= 5
        assert all(item.localized_title == "found" for item in enriched)
