"""Image attachment download and validation.

An attachment is optional: any problem fetching or validating the image is
logged and the notification goes out without it.
"""

import mimetypes
import posixpath
import re
import tempfile
from typing import BinaryIO, Optional
from urllib.parse import unquote, urlsplit

import requests

from pushover_relay.logging import get_logger

from .params import presence

logger = get_logger(__name__, component="attachment")

MAX_ATTACHMENT_SIZE = 2_621_440  # 2.5 MB, the Pushover API limit
SUPPORTED_IMAGE_TYPE = re.compile(r"^image/(jpeg|png|gif)$", re.IGNORECASE)
DEFAULT_FILENAME = "image"

# Downloads larger than this roll over from memory to a temporary file
SPOOL_MAX_MEMORY = 512 * 1024
CHUNK_SIZE = 64 * 1024


class Attachment:
    """A downloaded image owned by exactly one dispatch call.

    Wraps a spooled temporary file. Use as a context manager, or call
    close(), to release it.
    """

    def __init__(self, fileobj: BinaryIO, content_type: str, size: int, filename: str = DEFAULT_FILENAME):
        self.fileobj = fileobj
        self.content_type = content_type
        self.size = size
        self.filename = filename

    @property
    def mime_type(self) -> str:
        """MIME type guessed from the file name, falling back to the served type."""
        return guess_image_type(self.filename) or self.content_type.lower()

    @property
    def closed(self) -> bool:
        return self.fileobj.closed

    def open_for_upload(self) -> BinaryIO:
        """Rewind and return the underlying file object."""
        self.fileobj.seek(0)
        return self.fileobj

    def close(self) -> None:
        if not self.fileobj.closed:
            self.fileobj.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return (
            f"Attachment(filename={self.filename!r}, content_type={self.content_type!r}, "
            f"size={self.size})"
        )


class AttachmentFetcher:
    """Resolves an image URL into a size- and type-checked Attachment.

    Checks run in order: fetch, size, type. fetch() never raises; every
    failure is logged and yields None.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        user_agent: Optional[str] = None,
        max_size: int = MAX_ATTACHMENT_SIZE,
    ):
        """Initialize the fetcher.

        Args:
            session: HTTP session to download with (creates one if None)
            timeout: Download timeout in seconds
            user_agent: Optional User-Agent header for downloads
            max_size: Largest accepted image in bytes
        """
        self.session = session or requests.Session()
        if user_agent:
            self.session.headers.update({"User-Agent": user_agent})
        self.timeout = timeout
        self.max_size = max_size

    def fetch(self, image_url: Optional[str]) -> Optional[Attachment]:
        """Download and validate the image at image_url.

        Args:
            image_url: Rendered image URL; blank means no attachment

        Returns:
            Attachment the caller must close, or None
        """
        url = presence(image_url)
        if url is None:
            return None

        try:
            attachment = self._download(url)
        except Exception as e:
            logger.warning(
                f"Failed to download image from '{url}': {e}",
                extra={"event": "attachment.download_failed", "url": url, "error_type": type(e).__name__},
            )
            return None

        if attachment.size > self.max_size:
            logger.warning(
                f"Image size exceeds 2.5 MB limit for '{url}'. Skipping attachment.",
                extra={"event": "attachment.too_large", "url": url, "max_size": self.max_size},
            )
            attachment.close()
            return None

        if not SUPPORTED_IMAGE_TYPE.match(attachment.content_type):
            logger.warning(
                f"Unsupported image type '{attachment.content_type}' for '{url}'. Skipping attachment.",
                extra={"event": "attachment.unsupported_type", "url": url},
            )
            attachment.close()
            return None

        logger.debug(
            f"Downloaded image from '{url}'",
            extra={"event": "attachment.downloaded", "size": attachment.size},
        )
        return attachment

    def _download(self, url: str) -> Attachment:
        """Stream the body into a spooled file, stopping one chunk past max_size.

        The returned size exceeds max_size whenever the body does, without
        the whole body ever being read.
        """
        response = self.session.get(url, stream=True, timeout=self.timeout)
        try:
            response.raise_for_status()
            content_type = _media_type(response.headers.get("Content-Type", ""))

            buffer = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY)
            size = 0
            try:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    size += len(chunk)
                    if size > self.max_size:
                        break
                    buffer.write(chunk)
            except BaseException:
                buffer.close()
                raise

            return Attachment(buffer, content_type, size, _filename_from_url(url))
        finally:
            response.close()


def _media_type(content_type: str) -> str:
    """Strip parameters such as '; charset=binary' from a Content-Type value."""
    return content_type.split(";", 1)[0].strip()


def _filename_from_url(url: str) -> str:
    name = posixpath.basename(unquote(urlsplit(url).path))
    return name or DEFAULT_FILENAME


def guess_image_type(filename: str) -> Optional[str]:
    """Guess a supported image type from a file name, or None."""
    guessed, _ = mimetypes.guess_type(filename)
    if guessed and SUPPORTED_IMAGE_TYPE.match(guessed):
        return guessed
    return None
