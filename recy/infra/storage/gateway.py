"""
Object storage gateway.

Hands out pre-signed URLs so clients upload evidence files and published
metadata straight to the bucket; file bytes never pass through this service.
"""
import asyncio
import logging
import mimetypes
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Callable, Optional, TypeVar

from recy.config import Settings
from recy.errors import InvalidInputError, RecyError, StorageError
from recy.messages import Message

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_ALLOWED_CONTENT_TYPES = ("video/", "image/", "application/pdf", "application/json")


@dataclass(frozen=True)
class PreSignedObjectUrl:
    """A storage key together with the URL a client uses to upload it."""
    file_name: str
    create_url: str


def _sanitize(file_name: str) -> str:
    base = PurePosixPath(file_name.replace("\\", "/")).name
    return _UNSAFE_CHARS.sub("_", base).strip("._")


def check_file_name(file_name: str) -> str:
    """Return the storage-safe form of file_name, or raise if it is unusable."""
    safe_name = _sanitize(file_name)
    if not safe_name:
        raise StorageError(Message.FILE_NAME_COULD_NOT_BE_CREATED, repr(file_name))
    
    content_type, _ = mimetypes.guess_type(safe_name)
    if content_type is None or not content_type.startswith(_ALLOWED_CONTENT_TYPES):
        raise InvalidInputError(Message.INVALID_FILE_TYPE, safe_name)
    return safe_name


def build_object_key(file_name: str, category: str, base_path: Optional[str] = None) -> str:
    """Derive the storage key for a desired file name.
    
    With base_path the key is deterministic (<base_path>/<name>), used for
    public objects that are re-published under the same name. Otherwise the
    key is <category>/<uuid>-<name>, unique per call and per category.
    """
    safe_name = check_file_name(file_name)
    
    if base_path:
        return f"{base_path.strip('/')}/{safe_name}"
    prefix = category.lower() if category else "uploads"
    return f"{prefix}/{uuid.uuid4().hex}-{safe_name}"


class StorageGateway(ABC):
    """Contract of the object storage collaborator."""
    
    @abstractmethod
    async def create_pre_signed_object_url(
        self,
        file_name: str,
        category: str,
        base_path: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> PreSignedObjectUrl:
        """Reserve a storage key for file_name and return its upload URL."""
    
    @abstractmethod
    async def create_signed_read_url(self, file_name: str, bucket: Optional[str] = None) -> str:
        """Return a time-limited URL to read an existing object."""
    
    @abstractmethod
    def public_object_url(self, file_name: str, bucket: str) -> str:
        """Return the stable public URL of an object in a public bucket."""


class SupabaseStorageGateway(StorageGateway):
    """StorageGateway backed by Supabase Storage.
    
    The Supabase client is synchronous, so every call runs in a worker
    thread and is bounded by settings.storage_timeout_seconds.
    """
    
    def __init__(self, client: Any, settings: Settings):
        self.client = client
        self.settings = settings
    
    async def _call(self, description: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args),
                timeout=self.settings.storage_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Storage call timed out: {description}")
            raise StorageError(Message.STORAGE_UNAVAILABLE, f"{description} timed out") from e
        except RecyError:
            raise
        except Exception as e:
            logger.error(f"Storage call failed: {description}: {e}")
            raise StorageError(Message.STORAGE_UNAVAILABLE, f"{description} failed: {e}") from e
    
    async def create_pre_signed_object_url(
        self,
        file_name: str,
        category: str,
        base_path: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> PreSignedObjectUrl:
        bucket = bucket or self.settings.storage_bucket
        key = build_object_key(file_name, category, base_path)
        
        res = await self._call(
            f"create signed upload url for {bucket}/{key}",
            self.client.storage.from_(bucket).create_signed_upload_url,
            key,
        )
        data = getattr(res, "data", None) or res
        url = data.get("signed_url") or data.get("signedUrl") or data.get("signedURL")
        if not url:
            raise StorageError(Message.STORAGE_UNAVAILABLE, f"no upload url returned for {key}")
        
        logger.debug(f"Issued upload url for {bucket}/{key}")
        return PreSignedObjectUrl(file_name=key, create_url=url)
    
    async def create_signed_read_url(self, file_name: str, bucket: Optional[str] = None) -> str:
        bucket = bucket or self.settings.storage_bucket
        if not file_name:
            raise StorageError(Message.STORAGE_UNAVAILABLE, "storage key empty")
        
        res = await self._call(
            f"create signed read url for {bucket}/{file_name}",
            self.client.storage.from_(bucket).create_signed_url,
            file_name,
            self.settings.read_url_expires_in,
        )
        data = getattr(res, "data", None) or res
        url = data.get("signedURL") or data.get("signedUrl") or data.get("signed_url")
        if not url:
            raise StorageError(Message.STORAGE_UNAVAILABLE, f"no read url returned for {file_name}")
        return url
    
    def public_object_url(self, file_name: str, bucket: str) -> str:
        return self.client.storage.from_(bucket).get_public_url(file_name).rstrip("?")
