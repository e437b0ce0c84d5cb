# =============================================================================
# Output Page Geometry
# =============================================================================

PAGE_WIDTH_MM = 210.0  # A4 width
PAGE_HEIGHT_MM = 297.0  # A4 height
CAPTURE_DENSITY_PX_PER_MM = 3.779527559  # 96 dpi capture pixels per millimetre

DEFAULT_FIELD_WIDTH_MM = 60.0
DEFAULT_FIELD_HEIGHT_MM = 15.0
DEFAULT_PAGE_NUMBER = 1

PDF_RENDER_DPI = 150  # Raster resolution of the generated page


# =============================================================================
# Dispatch
# =============================================================================

TOKEN_BYTES = 32  # 256 bits of randomness per signing token
SIGNING_PATH = "/sign"
ATTACHMENT_FILENAME = "document.pdf"


# =============================================================================
# External Service Timeouts (seconds)
# =============================================================================

SENDGRID_TIMEOUT_SECONDS = 15.0
PDF_FETCH_TIMEOUT_SECONDS = 15.0


# =============================================================================
# Validation Limits
# =============================================================================

TITLE_MAX_LENGTH = 255
MESSAGE_MAX_LENGTH = 5000
NAME_MAX_LENGTH = 100
MAX_RECIPIENTS = 50
MAX_EMAILS_PER_RECIPIENT = 10
MAX_FIELDS = 200
MAX_CAPTURE_SIZE_MB = 20
MAX_SURFACE_PX = 20000
MAX_CAPTURE_PIXELS = MAX_SURFACE_PX * MAX_SURFACE_PX // 4


# =============================================================================
# Request Statuses
# =============================================================================

STATUS_PENDING = "pending"
STATUS_SIGNED = "signed"
STATUS_COMPLETED = "completed"


# =============================================================================
# Error Handling
# =============================================================================

ERROR_BODY_MAX_CHARS = 200  # Maximum chars from error response bodies
