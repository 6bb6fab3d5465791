from __future__ import annotations

import mimetypes
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from django.conf import settings
from django.http import FileResponse

PUBLIC_DIR = "uploads"
PRIVATE_DIR = "private_uploads"

PUBLIC_UPLOADS = PUBLIC_DIR
PRIVATE_MATERIALS = f"{PRIVATE_DIR}/materials"
PRIVATE_PYQS = f"{PRIVATE_DIR}/pyqs"

MB = 1024 * 1024

FILE_KINDS = {
    "pdf": {".pdf"},
    "image": {".png", ".jpg", ".jpeg", ".webp", ".gif"},
    "doc": {".doc", ".docx"},
    "ppt": {".ppt", ".pptx"},
}

CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class UploadError(Exception):
    pass


class InvalidFileReference(Exception):
    pass


@dataclass(frozen=True)
class UploadTarget:
    private: bool
    subdir: str
    kinds: tuple
    max_bytes: int
    type_error: str

    @property
    def relative_dir(self):
        return f"{PRIVATE_DIR if self.private else PUBLIC_DIR}/{self.subdir}"

    @property
    def extensions(self):
        allowed = set()
        for kind in self.kinds:
            allowed |= FILE_KINDS[kind]
        return allowed


UPLOAD_TARGETS = {
    "specimen-image": UploadTarget(False, "images", ("image",), 5 * MB, "Only image files are allowed"),
    "material-pdf": UploadTarget(
        False,
        "materials",
        ("pdf", "image", "doc", "ppt"),
        20 * MB,
        "Only PDF, image, Word or PowerPoint files are allowed",
    ),
    "material-private": UploadTarget(True, "materials", ("pdf", "image"), 20 * MB, "Only PDF or image files are allowed"),
    "pyq-pdf": UploadTarget(True, "pyqs", ("pdf",), 20 * MB, "Only PDF files are allowed"),
    "pyq-public": UploadTarget(False, "pyqs", ("pdf",), 20 * MB, "Only PDF files are allowed"),
}


def upload_root() -> Path:
    return Path(settings.UPLOAD_ROOT)


def _extension_for(uploaded_file) -> str:
    ext = Path(uploaded_file.name or "").suffix.lower()
    if not ext:
        ext = (mimetypes.guess_extension(getattr(uploaded_file, "content_type", "") or "") or "").lower()
    return ext


def build_stored_name(original_name: str, ext: str) -> str:
    base = Path(original_name or "file").stem
    base = re.sub(r"\s+", "_", base.strip())
    base = re.sub(r"[^A-Za-z0-9._-]", "", base) or "file"
    return f"{base[:80]}_{int(time.time() * 1000)}_{secrets.randbelow(10**9)}{ext}"


def save_upload(uploaded_file, target_key: str) -> dict:
    """Write an uploaded file under its target directory.

    Public targets return ``{"url": "/uploads/..."}``; private targets return
    ``{"ref": "private_uploads/..."}`` which is only served through access checks.
    """
    target = UPLOAD_TARGETS[target_key]
    ext = _extension_for(uploaded_file)
    if ext not in target.extensions:
        raise UploadError(target.type_error)
    if uploaded_file.size > target.max_bytes:
        raise UploadError(f"File too large (max {target.max_bytes // MB} MB)")

    directory = upload_root() / target.relative_dir
    directory.mkdir(parents=True, exist_ok=True)
    stored_name = build_stored_name(uploaded_file.name, ext)
    with open(directory / stored_name, "wb") as handle:
        for chunk in uploaded_file.chunks():
            handle.write(chunk)

    relative = f"{target.relative_dir}/{stored_name}"
    if target.private:
        return {"ref": relative}
    return {"url": f"/{relative}"}


def resolve_file_ref(ref: str, allowed_bases) -> Path:
    """Map a stored url/ref to a path inside one of ``allowed_bases``."""
    value = str(ref or "").strip()
    if not value or "://" in value or "\x00" in value:
        raise InvalidFileReference(value)
    value = value.split("?", 1)[0].lstrip("/")

    root = upload_root().resolve()
    candidate = (root / value).resolve()
    for base in allowed_bases:
        base_dir = (root / base).resolve()
        if candidate == base_dir:
            continue
        if base_dir in candidate.parents:
            return candidate
    raise InvalidFileReference(value)


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")


def protected_file_response(path: Path, content_type=None):
    response = FileResponse(open(path, "rb"), content_type=content_type or content_type_for(path))
    response["Content-Disposition"] = f'inline; filename="{path.name}"'
    response["Cache-Control"] = "private, no-store, max-age=0"
    response["Pragma"] = "no-cache"
    response["X-Content-Type-Options"] = "nosniff"
    return response
