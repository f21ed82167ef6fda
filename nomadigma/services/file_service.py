# nomadigma/services/file_service.py
import logging
import aiofiles
import magic
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Optional
from ..config import Config
from ..errors import StorageError, ValidationError

@dataclass
class UploadedFile:
    """A file received in a multipart form"""
    filename: str
    content_type: Optional[str]
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> Optional[str]:
        suffix = PurePosixPath(self.filename or "").suffix.lower().lstrip(".")
        return suffix or None

class FileService:
    """Blob storage on the local filesystem, served under PUBLIC_URL"""

    IMAGE_TYPES: Dict[str, str] = {
        'image/jpeg': 'jpg',
        'image/png': 'png',
        'image/webp': 'webp',
    }

    # Stored as-is, anything else becomes .bin
    DOWNLOAD_EXTENSIONS = {'pdf', 'epub', 'mobi', 'zip', 'mp3', 'mp4', 'gpx', 'kml', 'jpg', 'png', 'webp'}

    MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB
    MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB

    def __init__(self, upload_dir: Optional[Path] = None,
                 public_url: Optional[str] = None,
                 container: Optional[str] = None):
        self.container = container or Config.STORAGE_CONTAINER
        self.upload_path = Path(upload_dir or Config.UPLOAD_DIR) / self.container
        self.public_base = (public_url or Config.PUBLIC_URL).rstrip("/")
        self.logger = logging.getLogger(__name__)
        self.upload_path.mkdir(parents=True, exist_ok=True)

    def validate_image(self, file: UploadedFile) -> str:
        """Return the sniffed MIME type of an image upload"""
        if file.size > self.MAX_IMAGE_SIZE:
            raise ValidationError('image', 'Image is too large. Maximum 10MB')

        mime_type = magic.from_buffer(bytes(file.content), mime=True)
        if mime_type not in self.IMAGE_TYPES:
            raise ValidationError('image', 'Only JPG, JPEG, PNG or WebP images are allowed')
        return mime_type

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or '..' in relative.parts:
            raise StorageError(f'Invalid storage path: {path}')
        return self.upload_path.joinpath(*relative.parts)

    def public_url(self, path: str) -> str:
        return f"{self.public_base}/{self.container}/{path}"

    async def upload_buffer(self, buffer: bytes, path: str, mime_type: str) -> str:
        """Store `buffer` at `path` and return its public URL"""
        if len(buffer) > self.MAX_FILE_SIZE:
            raise ValidationError('file', 'File exceeds the maximum allowed size')

        save_path = self._resolve(path)
        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(save_path, 'wb') as f:
                await f.write(buffer)
        except OSError as e:
            self.logger.error(f"Error uploading {path} ({mime_type}): {e}", exc_info=True)
            raise StorageError('Error processing buffer upload') from e

        self.logger.info(f"Stored {path} ({mime_type}, {len(buffer)} bytes)")
        return self.public_url(path)

