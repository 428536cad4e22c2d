from recy.infra.storage.gateway import (
    PreSignedObjectUrl,
    StorageGateway,
    SupabaseStorageGateway,
    build_object_key,
)

__all__ = [
    "PreSignedObjectUrl",
    "StorageGateway",
    "SupabaseStorageGateway",
    "build_object_key",
]
