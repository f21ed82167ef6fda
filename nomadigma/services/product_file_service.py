# nomadigma/services/product_file_service.py
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence
from ..errors import StorageError, ValidationError
from ..models.product import DigitalFileDescriptor, FileType
from .file_service import FileService, UploadedFile

class ProductFileService:
    """Images and downloadable variant files of products"""

    def __init__(self, file_service: FileService):
        self.file_service = file_service
        self.logger = logging.getLogger(__name__)

    async def upload_images(self, key: str, images: Sequence[UploadedFile]) -> List[str]:
        """Validate and store product images, returning their URLs"""
        urls = []
        for i, image in enumerate(images):
            if not image or image.size == 0:
                continue

            mime_type = self.file_service.validate_image(image)
            extension = FileService.IMAGE_TYPES[mime_type]
            urls.append(await self.file_service.upload_buffer(
                image.content,
                f"products/{key}_{i}.{extension}",
                mime_type
            ))
        return urls

    async def upload_cover(self, post_id: str, cover: UploadedFile) -> Optional[str]:
        """Store a post cover image; failures leave the post without a cover"""
        mime_type = self.file_service.validate_image(cover)
        extension = FileService.IMAGE_TYPES[mime_type]
        try:
            return await self.file_service.upload_buffer(
                cover.content, f"covers/{post_id}.{extension}", mime_type
            )
        except StorageError as e:
            self.logger.warning(f"Continuing without cover image for post {post_id}: {e}")
            return None

    async def build_variant_files(self, product_id: str, entries: Any,
                                  files: Mapping[str, UploadedFile],
                                  keep_existing_urls: bool = False
                                  ) -> Optional[List[DigitalFileDescriptor]]:
        """Turn the submitted descriptor list into stored descriptors.

        On create, entry `i` of type `file` reads form field `variant_file_<i>`.
        On update (`keep_existing_urls`), new uploads are numbered in order of
        appearance and an entry without a new upload keeps its current url.
        """
        if not isinstance(entries, list):
            raise ValidationError('variant_files', 'Field variant_files must be a list')

        descriptors: List[DigitalFileDescriptor] = []
        file_index = 0

        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                continue
            values = [str(v) for v in entry.get('values') or []]
            entry_type = entry.get('type')

            if entry_type == FileType.FILE.value:
                index = file_index if keep_existing_urls else i
                upload = files.get(f"variant_file_{index}")

                if upload is not None and upload.size > 0:
                    extension = (upload.extension if upload.extension in FileService.DOWNLOAD_EXTENSIONS
                                 else 'bin')
                    url = await self.file_service.upload_buffer(
                        upload.content,
                        f"products/variants/{product_id}_{index}_{int(time.time() * 1000)}.{extension}",
                        upload.content_type or 'application/octet-stream'
                    )
                    file_index += 1
                elif keep_existing_urls and entry.get('url'):
                    url = entry['url']
                else:
                    raise ValidationError(
                        'variant_files',
                        f"Variant file {i + 1} has no file selected"
                    )
                descriptors.append(DigitalFileDescriptor(values=values, type=FileType.FILE, url=url))

            elif entry_type == FileType.URL.value and entry.get('url'):
                descriptors.append(DigitalFileDescriptor(values=values, type=FileType.URL, url=entry['url']))

        return descriptors or None

    def uploads_from_form(self, form: Mapping[str, Any]) -> Dict[str, UploadedFile]:
        return {
            key: value for key, value in form.items()
            if key.startswith('variant_file_') and isinstance(value, UploadedFile)
        }
