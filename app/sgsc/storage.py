from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import boto3
from botocore.exceptions import ClientError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

# Incident report scans and voucher receipts.
ALLOWED_ATTACHMENT_EXTENSIONS = frozenset({"pdf", "png", "jpg", "jpeg", "webp"})


class StorageError(RuntimeError):
    pass


class Storage:
    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        raise NotImplementedError

    def open(self, key: str) -> BinaryIO:
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class LocalStorage(Storage):
    root: Path

    def _path(self, key: str) -> Path:
        safe_key = key.lstrip("/").replace("\\", "/")
        p = (self.root / safe_key).resolve()
        if self.root.resolve() not in p.parents:
            raise StorageError(f"Invalid storage key: {key}")
        return p

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        p = self._path(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)

    def open(self, key: str) -> BinaryIO:
        return self._path(key).open("rb")

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


@dataclass(frozen=True)
class S3Storage(Storage):
    endpoint: str
    region: str
    bucket: str
    access_key_id: str
    secret_access_key: str

    def _client(self):
        return boto3.client(
            "s3",
            endpoint_url=f"https://{self.endpoint}" if self.endpoint else None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
        )

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        extra: dict[str, object] = {}
        if content_type:
            extra["ContentType"] = content_type
        self._client().put_object(Bucket=self.bucket, Key=key, Body=data, **extra)

    def open(self, key: str) -> BinaryIO:
        obj = self._client().get_object(Bucket=self.bucket, Key=key)
        return obj["Body"]  # type: ignore[return-value]

    def exists(self, key: str) -> bool:
        try:
            self._client().head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError:
            return False

    def delete(self, key: str) -> None:
        self._client().delete_object(Bucket=self.bucket, Key=key)


def storage_from_config(config: dict) -> Storage:
    backend = (config.get("STORAGE_BACKEND") or "local").strip().lower()
    if backend == "s3":
        return S3Storage(
            endpoint=(config.get("S3_ENDPOINT") or "").strip(),
            region=(config.get("S3_REGION") or "nyc3").strip(),
            bucket=(config.get("S3_BUCKET") or "").strip(),
            access_key_id=(config.get("S3_ACCESS_KEY_ID") or "").strip(),
            secret_access_key=(config.get("S3_SECRET_ACCESS_KEY") or "").strip(),
        )
    root = Path(config.get("STORAGE_LOCAL_ROOT") or (Path(os.getcwd()) / "storage"))
    return LocalStorage(root=root)


def attachment_extension(filename: str | None) -> str:
    name = secure_filename(filename or "")
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def save_attachment(storage: Storage, file: FileStorage, prefix: str) -> str:
    """
    Store an uploaded attachment under `<prefix>/<uuid>-<filename>` and
    return its key. Raises ValueError for an empty or disallowed file.
    """
    name = secure_filename(file.filename or "")
    if not name:
        raise ValueError("Attachment has no file name.")
    ext = attachment_extension(name)
    if ext not in ALLOWED_ATTACHMENT_EXTENSIONS:
        raise ValueError(f"Attachment type not allowed. Use one of: {', '.join(sorted(ALLOWED_ATTACHMENT_EXTENSIONS))}")
    data = file.read()
    if not data:
        raise ValueError("Attachment is empty.")
    key = f"{prefix.strip('/')}/{uuid.uuid4().hex}-{name}"
    storage.put_bytes(key, data, content_type=file.mimetype or None)
    return key
