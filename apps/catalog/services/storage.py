"""
Photo storage collaborator.

The catalog only needs upload(source) -> StoredPhoto(url, public_id) and
delete(public_id). The adapter class is chosen with the
CATALOG_PHOTO_STORAGE setting; the default one writes through Django's
storage API so any configured backend (filesystem, S3, ...) can host photos.
"""

import logging
import os
import uuid
from dataclasses import dataclass

from django.conf import settings
from django.core.files import File
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils.module_loading import import_string

from apps.catalog.exceptions import StorageError

logger = logging.getLogger(__name__)

REMOTE_PREFIXES = ('http://', 'https://')
MOBILE_PREFIXES = ('file://', 'blob:')


@dataclass(frozen=True)
class StoredPhoto:
    url: str
    public_id: str


def is_remote_reference(source) -> bool:
    return isinstance(source, str) and source.startswith(REMOTE_PREFIXES)


def needs_upload(source) -> bool:
    """
    Local paths, mobile URIs and file objects go through storage;
    remote URLs are stored as they are.
    """
    if source is None:
        return False
    if not isinstance(source, str):
        return True
    return not is_remote_reference(source)


class PhotoStorage:
    """Interface of the storage collaborator."""

    def upload(self, source, folder=None) -> StoredPhoto:
        raise NotImplementedError

    def delete(self, public_id: str) -> None:
        raise NotImplementedError


class DjangoPhotoStorage(PhotoStorage):
    def __init__(self, storage=None, folder=None):
        self.storage = storage or default_storage
        self.folder = folder or getattr(settings, 'CATALOG_PHOTO_FOLDER', 'produits')

    def upload(self, source, folder=None) -> StoredPhoto:
        content = self._open(source)
        ext = os.path.splitext(content.name or '')[1].lower() or '.jpg'
        name = f"{folder or self.folder}/{uuid.uuid4().hex}{ext}"
        try:
            saved_name = self.storage.save(name, content)
        except OSError as e:
            raise StorageError(f"Erreur lors du téléversement de l'image : {e}") from e
        url = self.storage.url(saved_name)
        logger.info("Uploaded photo %s -> %s", saved_name, url)
        return StoredPhoto(url=url, public_id=saved_name)

    def delete(self, public_id: str) -> None:
        if not public_id:
            return
        if not self.storage.exists(public_id):
            logger.warning("Photo %s already absent from storage", public_id)
            return
        try:
            self.storage.delete(public_id)
        except OSError as e:
            raise StorageError(f"Échec de la suppression de l'image {public_id}: {e}") from e
        logger.info("Deleted photo %s", public_id)

    def _open(self, source):
        if hasattr(source, 'read'):
            return File(source, name=os.path.basename(getattr(source, 'name', '') or 'photo'))
        if isinstance(source, (bytes, bytearray)):
            return ContentFile(bytes(source), name='photo.jpg')
        if not isinstance(source, str):
            raise StorageError(f"Source de photo non supportée: {type(source).__name__}")
        if source.startswith('blob:'):
            raise StorageError('URI non supporté')
        path = source[len('file://'):] if source.startswith('file://') else source
        if not os.path.isfile(path):
            raise StorageError(f'Le fichier "{path}" n\'existe pas.')
        with open(path, 'rb') as fh:
            return ContentFile(fh.read(), name=os.path.basename(path))


def get_photo_storage() -> PhotoStorage:
    path = getattr(settings, 'CATALOG_PHOTO_STORAGE',
                   'apps.catalog.services.storage.DjangoPhotoStorage')
    return import_string(path)()
