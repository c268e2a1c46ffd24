import io
import logging
import os
import re
import secrets
import time
from typing import Optional

import PyPDF2
from PyPDF2.errors import PdfReadError

from recruiter.core.config import settings
from recruiter.core.exceptions import ResourceDenied, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf"}
_SAFE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_resume(content: bytes, filename: str) -> None:
    """Reject anything that is not a readable, non-empty PDF before it reaches storage."""
    file_ext = os.path.splitext(filename or "")[1].lower()
    if file_ext not in ALLOWED_EXTENSIONS:
        raise ValidationError("Please upload a PDF file", details={"filename": filename})
    if not content:
        raise ValidationError("Uploaded resume is empty")
    if len(content) > settings.storage.max_upload_bytes:
        raise ValidationError(
            f"File size exceeds {settings.storage.max_upload_bytes / (1024 * 1024):.0f}MB limit"
        )
    try:
        reader = PyPDF2.PdfReader(io.BytesIO(content))
        page_count = len(reader.pages)
    except (PdfReadError, ValueError, OSError) as e:
        logger.warning(f"Rejected unreadable PDF '{filename}': {e}")
        raise ValidationError("Uploaded file is not a readable PDF")
    if page_count == 0:
        raise ValidationError("Uploaded PDF has no pages")


class ResumeStore:
    """
    Binary object store for resumes: one directory ("bucket"), objects keyed
    by a generated filename and exposed through a public URL.
    """

    def __init__(self, bucket_dir: Optional[str] = None, public_base_url: Optional[str] = None, create_bucket: Optional[bool] = None):
        self.bucket_dir = bucket_dir or settings.storage.resume_dir
        self.public_base_url = (public_base_url or settings.storage.public_base_url).rstrip("/")
        self.create_bucket = settings.storage.create_bucket if create_bucket is None else create_bucket

    def _ensure_bucket(self) -> None:
        if os.path.isdir(self.bucket_dir):
            return
        if not self.create_bucket:
            raise ResourceDenied(
                "Resume bucket does not exist. Create it or enable RESUME_STORAGE_CREATE.",
                status_code=404,
            )
        try:
            os.makedirs(self.bucket_dir, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create resume bucket {self.bucket_dir}: {e}")
            raise ResourceDenied("Resume bucket could not be created.")

    def _object_path(self, filename: str) -> str:
        if not _SAFE_NAME.match(filename or ""):
            raise ResourceDenied("Invalid resume object name.", status_code=404)
        return os.path.join(self.bucket_dir, filename)

    @staticmethod
    def generate_filename(original_name: str) -> str:
        file_ext = os.path.splitext(original_name or "")[1].lower().lstrip(".") or "pdf"
        return f"{int(time.time() * 1000)}-{secrets.token_hex(3)}.{file_ext}"

    def public_url(self, filename: str) -> str:
        return f"{self.public_base_url}{settings.api_prefix}/resumes/{filename}"

    @staticmethod
    def filename_from_url(url: str) -> str:
        return (url or "").rstrip("/").split("/")[-1]

    def upload_resume(self, content: bytes, filename: str) -> str:
        """Store the bytes under a generated name and return its public URL."""
        self._ensure_bucket()
        object_name = self.generate_filename(filename)
        path = self._object_path(object_name)
        try:
            with open(path, "wb") as f:
                f.write(content)
        except PermissionError as e:
            logger.error(f"Permission denied writing resume {object_name}: {e}")
            raise ResourceDenied("Not allowed to write to the resume bucket.")
        except OSError as e:
            logger.error(f"Failed to store resume {object_name}: {e}")
            raise ResourceDenied("Resume upload failed.")
        logger.info(f"Stored resume {object_name} ({len(content)} bytes)")
        return self.public_url(object_name)

    def download_resume(self, filename: str) -> bytes:
        path = self._object_path(filename)
        if not os.path.isdir(self.bucket_dir):
            raise ResourceDenied("Resume bucket does not exist.", status_code=404)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise ResourceDenied("Resume not found in storage.", status_code=404)
        except PermissionError as e:
            logger.error(f"Permission denied reading resume {filename}: {e}")
            raise ResourceDenied("Not allowed to read the resume.")
