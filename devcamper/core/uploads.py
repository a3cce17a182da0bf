# devcamper/core/uploads.py
import os
import shutil
from datetime import date
from typing import BinaryIO, Optional


def photo_filename(bootcamp_id: str, original_name: Optional[str], today: Optional[date] = None) -> str:
    """``BOOTCAMP_<id>_<DDMMYYYY><ext>``, keeping the uploaded file's extension."""
    today = today or date.today()
    ext = os.path.splitext(original_name or "")[1]
    return f"BOOTCAMP_{bootcamp_id}_{today.strftime('%d%m%Y')}{ext}"


def upload_size(fileobj: BinaryIO) -> int:
    pos = fileobj.tell()
    fileobj.seek(0, os.SEEK_END)
    size = fileobj.tell()
    fileobj.seek(pos)
    return size


def save_upload(fileobj: BinaryIO, destination: str) -> None:
    os.makedirs(os.path.dirname(destination) or ".", exist_ok=True)
    fileobj.seek(0)
    with open(destination, "wb") as out:
        shutil.copyfileobj(fileobj, out)
