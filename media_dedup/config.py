"""
Configuration constants for the media duplicate scanner.
"""

# --- File Type Definitions ---
# Pillow sniffs most image formats from their header; these tables cover the
# formats it cannot decode plus video/audio, which are classified by extension.
IMAGE_EXTS = {
    '.jpg', '.jpeg', '.jpe', '.gif', '.png', '.bmp', '.webp', '.tif', '.tiff',
    '.heic', '.heif', '.cr2', '.cr3', '.nef', '.arw', '.orf', '.rw2', '.dng', '.psd',
}
VIDEO_EXTS = {'.mp4', '.mov', '.m4v', '.avi', '.mts', '.m2ts', '.3gp', '.mpg', '.mpeg', '.mkv', '.webm', '.wmv'}
AUDIO_EXTS = {'.mp3', '.m4a', '.aac', '.wav', '.flac', '.ogg', '.oga', '.wma', '.aiff', '.aif', '.amr'}

# Extension to (mime type, mime subtype) mapping
EXT_TO_MIME = {}
for ext in IMAGE_EXTS: EXT_TO_MIME[ext] = ('image', ext.lstrip('.'))
for ext in VIDEO_EXTS: EXT_TO_MIME[ext] = ('video', ext.lstrip('.'))
for ext in AUDIO_EXTS: EXT_TO_MIME[ext] = ('audio', ext.lstrip('.'))
EXT_TO_MIME['.jpg'] = EXT_TO_MIME['.jpe'] = ('image', 'jpeg')
EXT_TO_MIME['.tif'] = ('image', 'tiff')
EXT_TO_MIME['.mov'] = ('video', 'quicktime')
EXT_TO_MIME['.mp3'] = ('audio', 'mpeg')

MEDIA_TYPES = ('image', 'video', 'audio')

# --- Metadata Parsing ---
EXIF_TAGS = {
    'EXIF DateTimeOriginal': 'DateTimeOriginal',
    'Image Make': 'Make',
    'Image Model': 'Model',
    'EXIF LensModel': 'LensModel',
}

# MediaInfo date fields, in priority order
MEDIA_DATE_FIELDS = ["recorded_date", "encoded_date", "tagged_date"]

# --- Traversal ---
# Max number of directory listings in flight at once (keeps us under the fd limit)
DEFAULT_CONCURRENCY = 20

# Thumbnail caches and NAS sidecar directories; regexes searched in the full path
DEFAULT_SKIP_PATTERNS = [r'/Thumbs/', r'@eaDir']

# Seconds between progress lines during a scan; 0 disables
DEFAULT_PRINT_INTERVAL = 0.0

# --- Reporting ---
DEFAULT_TOP = 10
FILE_INFO_JSON = "file-info.json"
DUPLICATES_JSON = "duplicates.json"
DATE_INFO_JSON = "date-info.json"
SIZE_INFO_JSON = "size-info.json"
LOG_FILE = "media_dedup.log"

# A unit is used for display once the value exceeds this fraction of it
SIZE_UNITS = [("GB", 1e9), ("MB", 1e6)]
SIZE_UNIT_THRESHOLD = 0.09

# --- Persistence ---
MEDIA_DB = "media.db"
MEDIA_WRITE_WORKERS = 8
DUPLICATE_WRITE_WORKERS = 10
