# Overview: Service-layer operations for uploads; stores subsidiary logo images.

from __future__ import annotations

import os
import secrets
import time

from flask import current_app
from werkzeug.utils import secure_filename

from ..validation import ValidationError


ALLOWED_LOGO_TYPES = {
    "image/jpeg": {".jpg", ".jpeg"},
    "image/png": {".png"},
}
PUBLIC_PREFIX = "/uploads/"


def save_logo(file_storage) -> str | None:
    """
    Store an uploaded JPEG/PNG logo and return its public path
    ("/uploads/<file>"). Returns None when no file was sent.
    """
    if not file_storage or not file_storage.filename:
        return None

    extensions = ALLOWED_LOGO_TYPES.get(file_storage.mimetype)
    safe_name = secure_filename(file_storage.filename)
    ext = os.path.splitext(safe_name)[1].lower()
    if not extensions or ext not in extensions:
        raise ValidationError("Invalid file type. Only JPEG and PNG are allowed.")

    upload_folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(upload_folder, exist_ok=True)

    stored_name = f"{int(time.time() * 1000)}_{secrets.token_hex(4)}{ext}"
    file_storage.save(os.path.join(upload_folder, stored_name))
    current_app.logger.info("Stored logo upload %s", stored_name)
    return PUBLIC_PREFIX + stored_name


def discard_logo(public_path: str | None) -> None:
    """Remove a stored logo whose database write did not happen."""
    if not public_path or not public_path.startswith(PUBLIC_PREFIX):
        return
    stored_name = public_path[len(PUBLIC_PREFIX):]
    try:
        os.remove(os.path.join(current_app.config["UPLOAD_FOLDER"], stored_name))
    except FileNotFoundError:
        pass
