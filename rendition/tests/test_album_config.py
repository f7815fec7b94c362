"""Tests for AlbumConfig."""

import pytest

from rendition import album_config
from rendition.album_config import AlbumConfig, effective_workers
from rendition.errors import ConfigOutOfRange


class TestAlbumConfig:
    """Tests for AlbumConfig."""

    def test_defaults(self):
        """Test defaults when nothing is configured."""
        config = AlbumConfig.from_dict(None)
        assert config.sizes == [800, 1400, 2080]
        assert config.quality == 90
        assert config.aspect_ratio == (4, 5)
        assert config.thumbnail_size == 400
        assert config.max_processes is None

    def test_from_dict(self):
        """Test nested layout parsing."""
        config = AlbumConfig.from_dict({
            'images': {'sizes': [400], 'quality': 75},
            'thumbnails': {'aspect_ratio': [3, 2], 'size': 300},
            'processing': {'max_processes': 2},
        })
        assert config.sizes == [400]
        assert config.quality == 75
        assert config.aspect_ratio == (3, 2)
        assert config.thumbnail_size == 300
        assert config.max_processes == 2
        assert AlbumConfig.from_dict(config.to_dict()) == config

    def test_validate_ok(self):
        """Test default config is valid."""
        assert AlbumConfig().validate() == []

    def test_validate_errors(self):
        """Test every invalid field is reported."""
        config = AlbumConfig(sizes=[0], quality=150, aspect_ratio=(4, 0), thumbnail_size=-1, max_processes=0)
        errors = config.validate()
        assert len(errors) == 5

    def test_require_valid(self):
        """Test invalid config raises ConfigOutOfRange naming the album."""
        with pytest.raises(ConfigOutOfRange) as exc_info:
            AlbumConfig(quality=101).require_valid('paris')
        assert exc_info.value.path == 'paris'

    def test_thumbnail_spec(self):
        """Test thumbnail spec carries the fixed sharpening."""
        spec = AlbumConfig().thumbnail_spec()
        assert spec.is_thumbnail
        assert spec.sharpening.sigma == 0.5
        assert spec.sharpening.threshold == 0



class TestEffectiveWorkers:
    """Tests for effective_workers."""

    def test_none_uses_all_cpus(self, mocker):
        """Test None means one worker per CPU."""
        mocker.patch.object(album_config, 'available_cpus', return_value=8)
        assert effective_workers(None) == 8

    def test_clamped_to_cpus(self, mocker):
        """Test values above the CPU count are clamped."""
        mocker.patch.object(album_config, 'available_cpus', return_value=4)
        assert effective_workers(16) == 4

    def test_within_range(self, mocker):
        """Test values within range are kept."""
        mocker.patch.object(album_config, 'available_cpus', return_value=4)
        assert effective_workers(1) == 1
        assert effective_workers(3) == 3
