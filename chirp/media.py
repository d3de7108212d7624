"""
Media storage capability.

Chirp only needs two operations from a media store: ``store(file, folder)``
returning ``(url, public_id, media_type)`` and ``delete(public_id)``.
Cloudinary is used when CLOUDINARY_CLOUD_NAME is configured; otherwise files go
to Django's default storage (MEDIA_ROOT in development).
"""

import logging

import cloudinary
import cloudinary.uploader
from django.conf import settings
from django.core.files.storage import default_storage
from django.utils.crypto import get_random_string

logger = logging.getLogger(__name__)


def detect_media_type(upload):
    content_type = getattr(upload, 'content_type', '') or ''
    return 'video' if content_type.startswith('video') else 'image'


class CloudinaryMediaStore:

    def __init__(self, cloud_name, api_key, api_secret):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    def store(self, upload, folder):
        media_type = detect_media_type(upload)
        result = cloudinary.uploader.upload(
            upload,
            folder=folder,
            resource_type='auto',
        )
        return result['secure_url'], result['public_id'], media_type

    def delete(self, public_id, media_type='image'):
        cloudinary.uploader.destroy(public_id, resource_type=media_type)


class LocalMediaStore:

    def store(self, upload, folder):
        media_type = detect_media_type(upload)
        name = f"{folder}/{get_random_string(12)}_{upload.name}"
        public_id = default_storage.save(name, upload)
        url = default_storage.url(public_id)
        if url.startswith('/'):
            url = f"{settings.CHIRP_PUBLIC_URL.rstrip('/')}{url}"
        return url, public_id, media_type

    def delete(self, public_id, media_type='image'):
        default_storage.delete(public_id)


_store = None


def get_media_store():
    global _store
    if _store is None:
        if settings.CLOUDINARY_STORAGE.get('CLOUD_NAME'):
            _store = CloudinaryMediaStore(
                settings.CLOUDINARY_STORAGE['CLOUD_NAME'],
                settings.CLOUDINARY_STORAGE['API_KEY'],
                settings.CLOUDINARY_STORAGE['API_SECRET'],
            )
        else:
            _store = LocalMediaStore()
    return _store
