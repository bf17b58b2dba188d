"""
MediaStorage: the binary object store for avatars and cover images.
Files land under MEDIA_ROOT with a random public id and are served from
MEDIA_URL. Upload and delete failures are logged and reported through the
return value, never raised.
"""
from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from urllib.parse import urlsplit

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaAsset:
    url: str
    public_id: str


class MediaStorage:

    def __init__(self, root: str, base_url: str = "/media/"):
        self.root = root
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    def reload(self):
        os.makedirs(self.root, exist_ok=True)

    def _path_for(self, filename: str) -> str:
        return os.path.join(self.root, filename)

    def _find(self, public_id: str) -> str | None:
        if not public_id or not os.path.isdir(self.root):
            return None
        for name in os.listdir(self.root):
            if os.path.splitext(name)[0] == public_id:
                return name
        return None

    def upload(self, file: FileStorage | None) -> MediaAsset | None:
        if file is None or not file.filename:
            logger.error("Media upload failed: no file provided")
            return None
        _, ext = os.path.splitext(secure_filename(file.filename))
        public_id = uuid.uuid4().hex
        filename = f"{public_id}{ext.lower()}"
        try:
            self.reload()
            file.save(self._path_for(filename))
        except OSError:
            logger.exception("Media upload failed for %s", file.filename)
            return None
        return MediaAsset(url=f"{self.base_url}{filename}", public_id=public_id)

    def delete(self, public_id: str | None) -> bool:
        filename = self._find(secure_filename(public_id or ""))
        if filename is None:
            logger.info("Media delete skipped: %r not found", public_id)
            return True
        try:
            os.remove(self._path_for(filename))
        except OSError:
            logger.exception("Media delete failed for %s", public_id)
            return False
        return True

    @staticmethod
    def public_id_from_url(url: str | None) -> str | None:
        """Last path segment without its extension."""
        if not url:
            return None
        name = urlsplit(url).path.rstrip("/").split("/")[-1]
        return os.path.splitext(name)[0] or None
