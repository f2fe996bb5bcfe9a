"""Central configuration for the ddb index.

All fixed names, tag ids and numeric constants are defined here so the
resolver, the extractor and the storage layer agree on them.
"""

# =============================================================================
# INDEX LAYOUT
# =============================================================================

# Reserved metadata directory created at the index root (never indexed)
DDB_FOLDER = ".ddb"

# sqlite database file inside DDB_FOLDER
DATABASE_FILENAME = "dbase.sqlite"

# =============================================================================
# HASHING
# =============================================================================

# Read size used when streaming file contents into the hash function
HASH_CHUNK_SIZE = 1024 * 1024

# =============================================================================
# CLASSIFICATION
# =============================================================================

# Extensions handed to Pillow for EXIF / GeoTIFF sniffing
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".tif", ".tiff", ".png", ".dng", ".webp"}

# Extensions classified as point clouds without opening the file
POINTCLOUD_EXTENSIONS = {".las", ".laz"}

# GeoTIFF tags (any of these marks a raster as georeferenced)
GEOTIFF_PIXEL_SCALE_TAG = 33550
GEOTIFF_TIEPOINT_TAG = 33922
GEOTIFF_TRANSFORMATION_TAG = 34264
GEOTIFF_GEOKEY_DIRECTORY_TAG = 34735
GEOTIFF_TAGS = (
    GEOTIFF_PIXEL_SCALE_TAG,
    GEOTIFF_TIEPOINT_TAG,
    GEOTIFF_TRANSFORMATION_TAG,
)

# GeoKey holding the model type, and its "geographic lat/lon" value
GEOKEY_MODEL_TYPE = 1024
GEOKEY_MODEL_TYPE_GEOGRAPHIC = 2

# =============================================================================
# CAMERA / FOCAL
# =============================================================================

# Width of a full-frame (35mm film) sensor in millimeters
FILM_35MM_WIDTH = 36.0

# Millimeters per EXIF FocalPlaneResolutionUnit code (2 = inch, 3 = cm)
MM_PER_RESOLUTION_UNIT = {
    2: 25.4,
    3: 10.0,
}

# Placeholder for camera make/model strings that cannot be read
UNKNOWN = "unknown"

# =============================================================================
# GEOMETRY
# =============================================================================

# Mean earth radius used to convert footprint offsets (meters) to degrees
EARTH_RADIUS = 6378137.0

# Gimbal pitch (degrees) within which a camera is treated as looking straight down
NADIR_PITCH_TOLERANCE = 10.0
