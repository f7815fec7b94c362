"""
Pytest fixtures for rendition tests.
"""

import copy
import io
import json
import logging
import os

import pytest
from PIL import Image


SMALL_CONFIG = {
    'images': {'sizes': [40, 80, 160], 'quality': 80},
    'thumbnails': {'aspect_ratio': [4, 5], 'size': 20},
}


def make_image_bytes(size=(120, 90), color='red', fmt='JPEG', mode='RGB', exif=None):
    """Encode a solid-colour image."""
    img = Image.new(mode, size, color=color)
    buffer = io.BytesIO()
    kwargs = {}
    if exif is not None:
        kwargs['exif'] = exif
    img.save(buffer, format=fmt, **kwargs)
    return buffer.getvalue()


def write_file(path, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'wb') as f:
        f.write(data)


def build_manifest_dict(albums, site_config=None):
    """
    Scan manifest dict for albums given as {album_path: [filename, ...]}.

    Album values may also be a dict with 'images' and 'config'.
    """
    data = {
        'config': copy.deepcopy(site_config if site_config is not None else SMALL_CONFIG),
        'navigation': [{'path': p} for p in albums],
        'albums': [],
    }
    for album_path, spec in albums.items():
        if isinstance(spec, dict):
            filenames = spec['images']
            config = spec.get('config')
        else:
            filenames = spec
            config = None
        album = {
            'path': album_path,
            'title': album_path.title(),
            'images': [
                {
                    'number': i + 1,
                    'source_path': f"{album_path}/{name}",
                    'filename': name,
                    'title': f"Photo {i + 1}",
                }
                for i, name in enumerate(filenames)
            ],
        }
        if config is not None:
            album['config'] = config
        data['albums'].append(album)
    return data


@pytest.fixture
def logger():
    """Fixture providing a test logger."""
    logger = logging.getLogger('test')
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def make_image():
    """Fixture providing the image bytes factory."""
    return make_image_bytes


@pytest.fixture
def make_manifest():
    """Fixture providing the scan manifest dict factory."""
    return build_manifest_dict


@pytest.fixture
def sample_image_bytes():
    """Fixture providing sample JPEG image bytes (landscape 120x90)."""
    return make_image_bytes()


@pytest.fixture
def sample_png_bytes():
    """Fixture providing sample PNG image bytes with transparency."""
    return make_image_bytes(size=(60, 80), color=(0, 0, 255, 128), fmt='PNG', mode='RGBA')


@pytest.fixture
def source_root(tmp_path):
    """Fixture providing a source tree with two albums."""
    root = tmp_path / 'photos'
    write_file(str(root / 'paris' / 'eiffel.jpg'), make_image_bytes((120, 90), 'red'))
    write_file(str(root / 'paris' / 'louvre.jpg'), make_image_bytes((90, 120), 'green'))
    write_file(str(root / 'rome' / 'colosseum.jpg'), make_image_bytes((100, 100), 'blue'))
    write_file(str(root / 'rome' / 'tiny.png'), make_image_bytes((30, 20), 'yellow', fmt='PNG'))
    return str(root)


@pytest.fixture
def manifest_data():
    """Fixture providing a scan manifest dict matching source_root."""
    return build_manifest_dict({
        'paris': ['eiffel.jpg', 'louvre.jpg'],
        'rome': ['colosseum.jpg', 'tiny.png'],
    })


@pytest.fixture
def output_dir(tmp_path):
    """Fixture providing an empty output directory path."""
    return str(tmp_path / 'public')


@pytest.fixture
def manifest_file(tmp_path, manifest_data):
    """Fixture providing the scan manifest written to disk."""
    path = tmp_path / 'scan.json'
    path.write_text(json.dumps(manifest_data))
    return str(path)
