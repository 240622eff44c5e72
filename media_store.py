import hashlib
import logging
import os
import tempfile

from werkzeug.utils import secure_filename

from errors import StorageWriteError

FALLBACK_NAME = "upload"


def _default_file_mode():
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


# mode a plain open() would give new files
FILE_MODE = _default_file_mode()


class MediaStore:
    """Writes uploaded media under a single upload folder.

    Stored references are paths relative to the upload folder, made of a
    fixed prefix and the sanitized upload name, e.g. ``article_cat.png``.
    Two uploads with the same sanitized name share a reference; the later one
    overwrites the earlier file.
    """

    def __init__(self, upload_root, prefix="article_", logger=None):
        self.upload_root = os.path.abspath(upload_root)
        self.prefix = prefix
        self.log = logger or logging.getLogger(__name__)

    def reference_for(self, suggested_name):
        stem, ext = os.path.splitext(suggested_name or "")
        safe_stem = secure_filename(stem)
        if not stem.isascii():
            # secure_filename drops non-ASCII text; keep distinct names apart
            digest = hashlib.sha1(stem.encode("utf-8")).hexdigest()[:8]
            safe_stem = f"{safe_stem}_{digest}" if safe_stem else digest
        filename = safe_stem or FALLBACK_NAME
        safe_ext = secure_filename(ext)
        if safe_ext:
            filename = f"{filename}.{safe_ext}"
        return f"{self.prefix}{filename}"

    def path_for(self, reference):
        return os.path.join(self.upload_root, reference)

    def store(self, suggested_name, data):
        reference = self.reference_for(suggested_name)
        final_path = self.path_for(reference)
        tmp_path = None
        try:
            os.makedirs(self.upload_root, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.upload_root, prefix=".part-")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp_path, FILE_MODE)
            os.replace(tmp_path, final_path)
        except OSError as e:
            self.log.error("Failed to write media %s: %s", reference, e)
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    self.log.warning("Could not remove partial upload %s", tmp_path)
            raise StorageWriteError(f"Failed to write media {reference}") from e

        self.log.info("Stored media %s (%d bytes)", reference, len(data))
        return reference
