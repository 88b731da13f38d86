# backend/config/constants.py

# -----------------------------
# ADMIN ACCOUNTS
# -----------------------------

DEFAULT_ADMIN_PERMISSIONS = ["products:moderate", "users:approve", "users:read"]

# -----------------------------
# LOGIN SURFACES
# -----------------------------

FRONTEND_TYPE_HEADER = "X-Frontend-Type"
ADMIN_FRONTEND = "admin"

# -----------------------------
# UPLOADS
# -----------------------------

MAX_PRODUCT_IMAGES = 10
MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024
DOCUMENT_CONTENT_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/webp",
}

# -----------------------------
# PASSWORDS
# -----------------------------

MAX_BCRYPT_BYTES = 72          # bcrypt hard limit

# -----------------------------
# ENQUIRIES
# -----------------------------

MAX_ENQUIRY_LENGTH = 5000
