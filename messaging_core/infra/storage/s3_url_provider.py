# =============================================================================
# File: messaging_core/infra/storage/s3_url_provider.py
# Description: S3 presigned URLs for message media and entity images
# =============================================================================

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Any, Literal, Optional

import aioboto3
from botocore.config import Config as BotoConfig

from messaging_core.config.logging_config import get_logger
from messaging_core.config.storage_config import StorageConfig, get_storage_config
from messaging_core.conversation.enums import EntityType, ImageMimeType, MessageMimeType

log = get_logger("messaging_core.infra.storage.s3")

UrlOperation = Literal["get", "upload"]

MESSAGE_FILE_EXTENSIONS = {
    MessageMimeType.AUDIO_MP3: "mp3",
    MessageMimeType.AUDIO_MP4: "mp4",
    MessageMimeType.VIDEO_MP4: "mp4",
    MessageMimeType.VIDEO_WEBM: "webm",
}

IMAGE_FILE_EXTENSIONS = {
    ImageMimeType.PNG: "png",
    ImageMimeType.JPEG: "jpeg",
}


def message_file_key(conversation_id: str, message_id: str, mime_type: MessageMimeType) -> str:
    return f"{conversation_id}/{message_id}.{MESSAGE_FILE_EXTENSIONS[mime_type]}"


def image_file_key(entity_type: EntityType, entity_id: str, mime_type: ImageMimeType) -> str:
    return f"{entity_type.value}/{entity_id}.{IMAGE_FILE_EXTENSIONS[mime_type]}"


class S3UrlProvider:
    """
    Presigned GET/PUT URLs. Uses aioboto3 with a persistent client
    (signing is local, but the client carries region and credentials).
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or get_storage_config()
        self.session = aioboto3.Session()
        self._boto_config = BotoConfig(
            signature_version="s3v4",
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
        )
        self._client: Optional[Any] = None
        self._exit_stack: Optional[AsyncExitStack] = None

    async def _get_client(self) -> Any:
        if self._client is None:
            self._exit_stack = AsyncExitStack()
            self._client = await self._exit_stack.enter_async_context(
                self.session.client(
                    service_name="s3",
                    endpoint_url=self.config.endpoint_url,
                    region_name=self.config.region,
                    config=self._boto_config,
                )
            )
            log.info("S3 client initialized (persistent connection)")
        return self._client

    async def close(self) -> None:
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._client = None
            self._exit_stack = None
            log.info("S3 client closed")

    async def get_signed_url(
        self,
        bucket: str,
        key: str,
        operation: UrlOperation,
        content_type: Optional[str] = None,
    ) -> str:
        client = await self._get_client()
        params = {"Bucket": bucket, "Key": key}
        if operation == "upload":
            if content_type:
                params["ContentType"] = content_type
            return await client.generate_presigned_url(
                "put_object", Params=params, ExpiresIn=self.config.signed_url_expires_seconds
            )
        return await client.generate_presigned_url(
            "get_object", Params=params, ExpiresIn=self.config.signed_url_expires_seconds
        )

    async def get_message_signed_url(
        self,
        conversation_id: str,
        message_id: str,
        mime_type: MessageMimeType,
        operation: UrlOperation,
    ) -> str:
        return await self.get_signed_url(
            self.config.message_bucket_name,
            message_file_key(conversation_id, message_id, mime_type),
            operation,
            content_type=mime_type.value,
        )

    async def get_image_signed_url(
        self,
        entity_type: EntityType,
        entity_id: str,
        mime_type: Optional[ImageMimeType],
        operation: UrlOperation,
    ) -> str:
        mime_type = mime_type or ImageMimeType.PNG
        return await self.get_signed_url(
            self.config.image_bucket_name,
            image_file_key(entity_type, entity_id, mime_type),
            operation,
            content_type=mime_type.value,
        )
