"""
Local JPEG re-encoding with Pillow, used when reSmush.it cannot be reached.
"""

import logging
import os
from PIL import Image

from ...utils.error_handlers import LocalEncodeError

logger = logging.getLogger(__name__)

# Detected MIME type -> Pillow decoder
DECODERS = {
    'image/jpeg': 'JPEG',
    'image/jpg': 'JPEG',
    'image/png': 'PNG',
    'image/gif': 'GIF',
}
DEFAULT_DECODER = 'JPEG'


class LocalEncoder:
    """
    Re-encodes any accepted source as JPEG. PNG and GIF inputs lose their
    original format.
    """

    def __init__(self, optimize: bool = True, progressive: bool = False):
        self.optimize = optimize
        self.progressive = progressive

    def reencode(
        self,
        source: str,
        destination: str,
        mime_type: str,
        quality: int = 85
    ) -> int:
        """
        Decode ``source`` and write it to ``destination`` as JPEG.

        Args:
            source: Source image path
            destination: Output path, may equal source
            mime_type: Detected MIME type selecting the decoder
            quality: JPEG quality (1-100)

        Returns:
            Size of the written file in bytes

        Raises:
            LocalEncodeError: If decoding or encoding fails
        """
        decoder = DECODERS.get(mime_type, DEFAULT_DECODER)

        try:
            # Fully load and detach from the source before writing, the
            # destination may be the source itself
            with Image.open(source, formats=[decoder]) as image:
                image.load()
                rgb_image = self._to_jpeg_mode(image)

            rgb_image.save(
                destination,
                format='JPEG',
                quality=quality,
                optimize=self.optimize,
                progressive=self.progressive
            )
        except (OSError, ValueError, EOFError, SyntaxError, Image.DecompressionBombError) as e:
            raise LocalEncodeError(
                f"Local re-encode of ({source}) failed: {e}",
                details={"decoder": decoder, "destination": destination}
            ) from e

        size = os.path.getsize(destination)
        logger.info(f"Re-encoded {source} as JPEG q={quality} -> {destination} ({size} bytes)")
        return size

    def _to_jpeg_mode(self, image: Image.Image) -> Image.Image:
        """Return a copy in a mode JPEG can store, flattening alpha onto white."""
        if image.mode in ('RGBA', 'LA', 'P', 'PA'):
            rgba = image.convert('RGBA')
            rgb_image = Image.new('RGB', rgba.size, (255, 255, 255))
            rgb_image.paste(rgba, mask=rgba.split()[3])
            return rgb_image

        if image.mode in ('RGB', 'L', 'CMYK'):
            return image.copy()

        return image.convert('RGB')
