import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import exifread
from PIL import Image, UnidentifiedImageError
from pymediainfo import MediaInfo

from .. import config
from ..exceptions import ClassificationError
from ..models import Classification, ClassifiedFile


class MediaClassifier:
    """
    Decides whether a file is an image, video or audio file and pulls the
    few metadata fields the reports need.

    Strategies:
      - Type: Pillow sniffs the header (magic bytes), so misnamed images are
        still found. Formats Pillow cannot decode fall back to the extension.
      - Images: 'exifread' for capture date / camera.
      - Video/Audio: 'pymediainfo' for duration / recorded date.

    Metadata failures never fail classification; they are reported in
    `ClassifiedFile.metadata_error`.
    """

    def classify(self, path: Path) -> Optional[ClassifiedFile]:
        """
        Returns None for files that are not media.
        Raises ClassificationError when the file cannot be read at all.
        """
        try:
            with path.open('rb') as f:
                f.read(1)
        except OSError as e:
            raise ClassificationError(f"Cannot read {path}: {e}") from e

        ext = path.suffix.lower()
        mime = self._sniff_image(path) or config.EXT_TO_MIME.get(ext)
        if mime is None:
            return None

        mime_type, subtype = mime
        classification = Classification(mime_type=mime_type, subtype=subtype, extension=ext)

        try:
            if mime_type == 'image':
                metadata = self.get_image_metadata(path)
            else:
                metadata = self.get_media_metadata(path)
        except Exception as e:
            logging.debug(f"Metadata extraction failed for {path}: {e}")
            return ClassifiedFile(classification, {}, metadata_error=str(e))

        return ClassifiedFile(classification, metadata)

    def _sniff_image(self, path: Path) -> Optional[Tuple[str, str]]:
        """(type, subtype) from the image header, or None if Pillow does not recognise it."""
        try:
            # open() only parses the header; pixel data is never decoded here
            with Image.open(path) as im:
                fmt = im.format
        except UnidentifiedImageError:
            return None
        except Exception as e:
            logging.debug(f"Pillow could not sniff {path}: {e}")
            return None

        if not fmt:
            return None
        mime = Image.MIME.get(fmt)
        if mime and "/" in mime:
            mime_type, subtype = mime.split("/", 1)
            return mime_type, subtype
        return 'image', fmt.lower()

    def get_image_metadata(self, path: Path) -> Dict[str, Any]:
        """EXIF fields listed in config.EXIF_TAGS, keyed by their short name."""
        with path.open('rb') as f:
            # details=False skips maker notes and thumbnails
            tags = exifread.process_file(f, details=False)

        metadata: Dict[str, Any] = {}
        for tag, key in config.EXIF_TAGS.items():
            if tag in tags:
                value = str(tags[tag]).strip()
                if key == 'DateTimeOriginal':
                    dt = self._parse_exif_date(value)
                    value = dt.isoformat() if dt else value
                metadata[key] = value
        return metadata

    def get_media_metadata(self, path: Path) -> Dict[str, Any]:
        """Duration (seconds) and recorded date from the General track."""
        mi = MediaInfo.parse(str(path))
        metadata: Dict[str, Any] = {}

        for track in mi.tracks:
            if track.track_type != "General":
                continue
            if getattr(track, "duration", None):
                # MediaInfo duration is in milliseconds
                metadata['Duration'] = float(track.duration) / 1000.0
            for field in config.MEDIA_DATE_FIELDS:
                val = getattr(track, field, None)
                if val:
                    metadata['RecordedDate'] = str(val).replace("UTC", "").strip()
                    break
        return metadata

    def _parse_exif_date(self, value: str) -> Optional[datetime]:
        # EXIF format is "YYYY:MM:DD HH:MM:SS"
        try:
            return datetime.strptime(value.replace(':', '-', 2), "%Y-%m-%d %H:%M:%S")
        except ValueError:
            return None
