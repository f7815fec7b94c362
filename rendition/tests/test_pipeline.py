"""Tests for Pipeline (end-to-end builds)."""

import os
import shutil

import pytest

from rendition import album_config
from rendition.errors import ConfigOutOfRange, DuplicateOutputError
from rendition.job import JobOutcome
from rendition.observer import JobObserver
from rendition.output_manifest import OutputManifest
from rendition.pipeline import Pipeline
from rendition.source_manifest import SourceManifest


class OutcomeRecorder(JobObserver):
    """Collects every job result."""

    def __init__(self):
        self.results = []

    def on_job_finished(self, result):
        self.results.append(result)

    def outcomes(self, album=None):
        return [r.outcome for r in self.results if album is None or r.job.album_path == album]


def run(source_root, output_dir, manifest_data, logger, **kwargs):
    recorder = OutcomeRecorder()
    pipeline = Pipeline(source_root, output_dir, observer=recorder, logger=logger, **kwargs)
    manifest = pipeline.process(SourceManifest.from_dict(manifest_data))
    return manifest, recorder


class TestPipeline:
    """Tests for Pipeline."""

    def test_cold_build(self, source_root, output_dir, manifest_data, logger):
        """Test a first build encodes every artifact and writes the manifest."""
        manifest, recorder = run(source_root, output_dir, manifest_data, logger)

        assert recorder.outcomes() == [JobOutcome.ENCODED] * 11
        assert os.path.isfile(os.path.join(output_dir, 'manifest.json'))
        assert manifest.stats['encoded'] == 11
        assert manifest.unprocessable_images == []
        assert [a.thumbnail for a in manifest.albums] == ['paris/eiffel-thumb.webp', 'rome/colosseum-thumb.webp']

    def test_idempotent(self, source_root, output_dir, manifest_data, logger):
        """Test a second unchanged build encodes nothing."""
        run(source_root, output_dir, manifest_data, logger)
        manifest, recorder = run(source_root, output_dir, manifest_data, logger)

        assert JobOutcome.ENCODED not in recorder.outcomes()
        assert set(recorder.outcomes()) == {JobOutcome.CACHE_HIT_REUSED}
        assert manifest.stats['encoded'] == 0

    def test_rename_album_copies(self, source_root, output_dir, manifest_data, make_manifest, logger):
        """Test renaming an album yields copies, not re-encodes."""
        run(source_root, output_dir, manifest_data, logger)

        shutil.copytree(os.path.join(source_root, 'paris'), os.path.join(source_root, 'france'))
        renamed = make_manifest({
            'france': ['eiffel.jpg', 'louvre.jpg'],
            'rome': ['colosseum.jpg', 'tiny.png'],
        })
        manifest, recorder = run(source_root, output_dir, renamed, logger)

        assert set(recorder.outcomes('france')) == {JobOutcome.CACHE_HIT_COPIED}
        assert len(recorder.outcomes('france')) == 6
        assert set(recorder.outcomes('rome')) == {JobOutcome.CACHE_HIT_REUSED}
        assert os.path.isfile(os.path.join(output_dir, 'france', 'eiffel-40.webp'))
        assert manifest.albums[0].thumbnail == 'france/eiffel-thumb.webp'

    def test_quality_change_scoped_to_album(self, source_root, output_dir, make_manifest, logger):
        """Test changing one album's quality re-encodes only that album."""
        albums = {
            'paris': ['eiffel.jpg', 'louvre.jpg'],
            'rome': {'images': ['colosseum.jpg', 'tiny.png'],
                     'config': {'images': {'sizes': [40, 80, 160], 'quality': 80},
                                'thumbnails': {'aspect_ratio': [4, 5], 'size': 20}}},
        }
        run(source_root, output_dir, make_manifest(albums), logger)

        albums['rome']['config']['images']['quality'] = 60
        _, recorder = run(source_root, output_dir, make_manifest(albums), logger)

        assert set(recorder.outcomes('rome')) == {JobOutcome.ENCODED}
        assert set(recorder.outcomes('paris')) == {JobOutcome.CACHE_HIT_REUSED}

        _, recorder = run(source_root, output_dir, make_manifest(albums), logger)
        assert set(recorder.outcomes()) == {JobOutcome.CACHE_HIT_REUSED}

    def test_no_upscale(self, source_root, output_dir, manifest_data, logger):
        """Test a source smaller than every size gets one native-size artifact."""
        manifest, _ = run(source_root, output_dir, manifest_data, logger)

        tiny = manifest.albums[1].images[1]
        assert tiny.filename == 'tiny.png'
        assert list(tiny.responsive) == [30]
        assert (tiny.responsive[30].width, tiny.responsive[30].height) == (30, 20)

    @pytest.mark.parametrize('aspect,size,expected', [
        ([4, 5], 40, (40, 50)),
        ([3, 2], 30, (45, 30)),
    ])
    def test_thumbnail_geometry(self, source_root, output_dir, manifest_data, logger, aspect, size, expected):
        """Test thumbnail dimensions follow aspect ratio and short edge."""
        manifest_data['config']['thumbnails'] = {'aspect_ratio': aspect, 'size': size}
        manifest, _ = run(source_root, output_dir, manifest_data, logger)

        for album in manifest.albums:
            for image in album.images:
                assert (image.thumbnail.width, image.thumbnail.height) == expected

    def test_partial_failure(self, tmp_path, output_dir, make_manifest, make_image, logger):
        """Test one corrupt image among ten leaves nine processed images."""
        root = tmp_path / 'src'
        (root / 'trip').mkdir(parents=True)
        names = [f"img{i:02d}.jpg" for i in range(10)]
        for i, name in enumerate(names):
            (root / 'trip' / name).write_bytes(make_image((60 + i, 45), color=(i * 20, 0, 0)))
        (root / 'trip' / 'img04.jpg').write_bytes(b'\xff\xd8 definitely not a jpeg')

        manifest, recorder = run(str(root), output_dir, make_manifest({'trip': names}), logger)

        images = manifest.albums[0].images
        assert len(images) == 10
        assert sum(1 for i in images if i.processable) == 9
        assert [i.filename for i in manifest.unprocessable_images] == ['img04.jpg']
        assert manifest.stats['failed'] == 1
        assert manifest.stats['unprocessable_images'] == ['trip/img04.jpg']
        assert all(r.job.image.filename != 'img04.jpg' for r in recorder.results)

    def test_missing_source(self, source_root, output_dir, manifest_data, logger):
        """Test a source missing on disk is reported, not fatal."""
        os.remove(os.path.join(source_root, 'paris', 'louvre.jpg'))
        manifest, _ = run(source_root, output_dir, manifest_data, logger)

        louvre = manifest.albums[0].images[1]
        assert not louvre.processable
        assert 'Cannot read source' in louvre.errors[0]

    def test_invalid_config_fatal(self, source_root, output_dir, manifest_data, logger):
        """Test an out-of-range config aborts before any work."""
        manifest_data['config']['images']['quality'] = 101
        with pytest.raises(ConfigOutOfRange):
            run(source_root, output_dir, manifest_data, logger)
        assert not os.path.exists(os.path.join(output_dir, 'manifest.json'))

    def test_duplicate_output_fatal(self, source_root, output_dir, make_manifest, logger):
        """Test two images mapping to one output path abort the build."""
        shutil.copy(os.path.join(source_root, 'rome', 'tiny.png'),
                    os.path.join(source_root, 'rome', 'colosseum.png'))
        data = make_manifest({'rome': ['colosseum.jpg', 'colosseum.png']})
        with pytest.raises(DuplicateOutputError):
            run(source_root, output_dir, data, logger)

    def test_workers_from_site_config(self, source_root, output_dir, manifest_data, logger, mocker):
        """Test processing.max_processes caps the worker pool."""
        mocker.patch.object(album_config, 'available_cpus', return_value=8)
        manifest_data['config']['processing'] = {'max_processes': 2}
        pipeline = Pipeline(source_root, output_dir, logger=logger)
        pipeline.process(SourceManifest.from_dict(manifest_data))
        assert pipeline.scheduler.max_workers == 2

    def test_max_workers_overrides_config(self, source_root, output_dir, manifest_data, logger, mocker):
        """Test an explicit worker count wins over the site config."""
        mocker.patch.object(album_config, 'available_cpus', return_value=8)
        manifest_data['config']['processing'] = {'max_processes': 2}
        pipeline = Pipeline(source_root, output_dir, max_workers=1, logger=logger)
        pipeline.process(SourceManifest.from_dict(manifest_data))
        assert pipeline.scheduler.max_workers == 1

    def test_manifest_on_disk_matches(self, source_root, output_dir, manifest_data, logger):
        """Test the written manifest loads back with the same content."""
        manifest, _ = run(source_root, output_dir, manifest_data, logger)
        loaded = OutputManifest.load(os.path.join(output_dir, 'manifest.json'))

        assert loaded.albums == manifest.albums
        assert loaded.passthrough['navigation'] == manifest_data['navigation']

    def test_identify_by_path(self, source_root, output_dir, manifest_data, logger, mocker):
        """Test every source is identified once, from its path."""
        pipeline = Pipeline(source_root, output_dir, logger=logger)
        spy = mocker.spy(pipeline.engine, 'identify')
        pipeline.process(SourceManifest.from_dict(manifest_data))

        expected = [os.path.join(source_root, p) for p in
                    ('paris/eiffel.jpg', 'paris/louvre.jpg', 'rome/colosseum.jpg', 'rome/tiny.png')]
        assert [call.args[0] for call in spy.call_args_list] == expected

    def test_identical_bytes_encoded_once(self, source_root, output_dir, make_manifest, logger):
        """Test the same photo in two albums is encoded once and copied once."""
        shutil.copy(os.path.join(source_root, 'paris', 'eiffel.jpg'),
                    os.path.join(source_root, 'rome', 'eiffel.jpg'))
        data = make_manifest({'paris': ['eiffel.jpg'], 'rome': ['eiffel.jpg']})
        _, recorder = run(source_root, output_dir, data, logger, max_workers=1)

        assert set(recorder.outcomes('paris')) == {JobOutcome.ENCODED}
        assert set(recorder.outcomes('rome')) == {JobOutcome.CACHE_HIT_COPIED}
