from __future__ import annotations
import io
from functools import lru_cache
from minio import Minio
from minio.error import S3Error
from challenge_matrix.config import settings

SCREENSHOTS = "screenshots"
AVATARS = "avatars"


class StorageError(Exception):
    pass


def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure


class ObjectStorage:
    """Screenshots and avatars live under their own key prefix in one S3 bucket."""

    def __init__(self, client: Minio, bucket: str, public_base_url: str):
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    def ensure_bucket(self) -> None:
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
        except S3Error as e:
            # bucket creation may race with another worker
            if e.code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise StorageError(str(e)) from e

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{key}"

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        key = f"{bucket}/{path}"
        try:
            self.client.put_object(self.bucket, key, io.BytesIO(data), length=len(data), content_type=content_type)
        except S3Error as e:
            raise StorageError(f"Upload failed: {e.code}") from e
        return self.url_for(key)


@lru_cache
def get_storage() -> ObjectStorage:
    host, secure = _parse_endpoint(settings.s3_endpoint)
    client = Minio(host, access_key=settings.s3_access_key, secret_key=settings.s3_secret_key, secure=secure)
    storage = ObjectStorage(client, settings.s3_bucket_uploads, settings.s3_public_base_url)
    storage.ensure_bucket()
    return storage
