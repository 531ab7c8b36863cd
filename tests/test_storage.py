"""DjangoPhotoStorage tests."""

import io

import pytest
from django.core.files.storage import FileSystemStorage

from apps.catalog.exceptions import StorageError
from apps.catalog.services.storage import DjangoPhotoStorage, is_remote_reference, needs_upload


@pytest.fixture
def photo_storage(tmp_path):
    backend = FileSystemStorage(location=str(tmp_path / 'media'), base_url='/media/')
    return DjangoPhotoStorage(storage=backend, folder='produits')


class TestReferenceKinds:

    @pytest.mark.parametrize('source,expected', [
        ('https://cdn.example.com/a.jpg', False),
        ('http://cdn.example.com/a.jpg', False),
        ('file:///data/user/0/cache/a.jpg', True),
        ('/home/alice/a.jpg', True),
        (io.BytesIO(b'x'), True),
        (None, False),
    ])
    def test_needs_upload(self, source, expected):
        assert needs_upload(source) is expected

    def test_remote_reference(self):
        assert is_remote_reference('https://x/y.png')
        assert not is_remote_reference(b'https://x/y.png')


class TestDjangoPhotoStorage:

    def test_upload_local_path_and_delete(self, photo_storage, tmp_path):
        source = tmp_path / 'chaise.png'
        source.write_bytes(b'\x89PNG fake')

        stored = photo_storage.upload(str(source))

        assert stored.public_id.startswith('produits/')
        assert stored.public_id.endswith('.png')
        assert stored.url.startswith('/media/produits/')
        assert photo_storage.storage.exists(stored.public_id)

        photo_storage.delete(stored.public_id)
        assert not photo_storage.storage.exists(stored.public_id)

    def test_upload_mobile_uri(self, photo_storage, tmp_path):
        source = tmp_path / 'mobile.jpg'
        source.write_bytes(b'jpeg')

        stored = photo_storage.upload(f'file://{source}')

        assert photo_storage.storage.exists(stored.public_id)

    def test_upload_file_object(self, photo_storage):
        upload = io.BytesIO(b'data')
        upload.name = 'scan.jpg'

        stored = photo_storage.upload(upload, folder='scans')

        assert stored.public_id.startswith('scans/')

    def test_blob_uri_is_unsupported(self, photo_storage):
        with pytest.raises(StorageError, match='URI non supporté'):
            photo_storage.upload('blob:http://localhost/1234')

    def test_missing_local_file(self, photo_storage, tmp_path):
        with pytest.raises(StorageError):
            photo_storage.upload(str(tmp_path / 'absent.jpg'))

    def test_delete_missing_object_is_success(self, photo_storage):
        photo_storage.delete('produits/deja-supprime.jpg')
