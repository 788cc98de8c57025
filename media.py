import logging
import os
import uuid

from werkzeug.utils import secure_filename

logger = logging.getLogger("microsocial.media")

URL_PREFIX = "/uploads"


class MediaStore:
    """
    Stores uploaded images under ``folder`` and names them for serving.

    Size limits are enforced by the transport (Flask ``MAX_CONTENT_LENGTH``);
    the store only makes the name unique and safe. Names that sanitise to
    nothing (e.g. non-ASCII only) are stored under the bare uuid.
    """

    def __init__(self, folder: str):
        self.folder = folder
        os.makedirs(folder, exist_ok=True)

    def store(self, file_storage) -> str:
        """Persist a Werkzeug FileStorage, returning ``/uploads/<filename>``."""
        filename = secure_filename(file_storage.filename or "")
        name = f"{uuid.uuid4().hex}_{filename}" if filename else uuid.uuid4().hex
        file_storage.save(os.path.join(self.folder, name))
        logger.info("Stored upload %s", name)
        return f"{URL_PREFIX}/{name}"
