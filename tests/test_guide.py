"""Tests for guide image caching and loading."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from vlogkit.errors import GuideImageError
from vlogkit.guide import GuideImageCache, GuideImageLoader
from vlogkit.models import Segment


class TestGuideImageCache:
    """Tests for GuideImageCache."""

    def test_inserting_six_keys_evicts_smallest(self):
        cache = GuideImageCache()
        evicted = [cache.put(order, f"image-{order}") for order in range(6)]

        assert evicted == [None, None, None, None, None, 0]
        assert cache.keys() == [1, 2, 3, 4, 5]
        assert len(cache) == 5
        assert 0 not in cache

    def test_eviction_ignores_recency(self):
        cache = GuideImageCache(capacity=2)
        cache.put(3, "a")
        cache.put(1, "b")
        cache.get(1)

        assert cache.put(7, "c") == 1
        assert cache.keys() == [3, 7]

    def test_overwrite_never_evicts(self):
        cache = GuideImageCache(capacity=2)
        cache.put(0, "a")
        cache.put(1, "b")

        assert cache.put(0, "a2") is None
        assert cache.get(0) == "a2"
        assert cache.keys() == [0, 1]

    def test_get_does_not_mutate(self):
        cache = GuideImageCache()
        cache.put(2, "a")

        assert cache.get(9) is None
        assert cache.get(2) == "a"
        assert cache.keys() == [2]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            GuideImageCache(capacity=0)

    def test_clear(self):
        cache = GuideImageCache()
        cache.put(0, "a")
        cache.clear()

        assert len(cache) == 0


class TestGuideImageLoader:
    """Tests for GuideImageLoader."""

    @pytest.fixture
    def generator(self):
        generator = MagicMock()
        generator.generate_guide_image.side_effect = lambda prompt, path: path
        return generator

    @pytest.mark.asyncio
    async def test_generates_then_caches(self, generator, tmp_path):
        loader = GuideImageLoader(generator, tmp_path)
        segment = Segment(order=1, start_seconds=10.0, end_seconds=25.0, description="  Latte art  ")

        first = await loader.load(segment)
        second = await loader.load(segment)

        assert first == tmp_path / "segment_1.png"
        assert second == first
        generator.generate_guide_image.assert_called_once_with("Latte art", tmp_path / "segment_1.png")
        assert loader.cache.keys() == [1]

    @pytest.mark.asyncio
    async def test_blank_description(self, generator, tmp_path):
        loader = GuideImageLoader(generator, tmp_path)
        segment = Segment(order=2, start_seconds=25.0, end_seconds=40.0, description="   ")

        assert await loader.load(segment) is None
        generator.generate_guide_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, tmp_path):
        generator = MagicMock()
        generator.generate_guide_image.side_effect = GuideImageError("quota")
        loader = GuideImageLoader(generator, tmp_path)
        segment = Segment(order=0, start_seconds=0.0, end_seconds=10.0, description="Storefront")

        with pytest.raises(GuideImageError):
            await loader.load(segment)

        assert 0 not in loader.cache

    @pytest.mark.asyncio
    async def test_uses_given_cache(self, generator, tmp_path):
        cache = GuideImageCache(capacity=1)
        cache.put(0, Path("/cached/0.png"))
        loader = GuideImageLoader(generator, tmp_path, cache)
        segment = Segment(order=0, start_seconds=0.0, end_seconds=10.0, description="Storefront")

        assert await loader.load(segment) == Path("/cached/0.png")
        generator.generate_guide_image.assert_not_called()
