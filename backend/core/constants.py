"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any business rule that references a numeric limit should import it from
here instead of hardcoding.  This avoids drift between apps that use the
same value.
"""

# ── Caseworker workload ─────────────────────────────────────────────
# A caseworker may hold at most this many active cases.  "Active" means
# PENDING + IN_PROGRESS when a supervisor assigns a case, and
# IN_PROGRESS only when the caseworker accepts one.
MAX_ACTIVE_CASES: int = 5

# ── Case list pagination ────────────────────────────────────────────
DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100
NOTIFICATION_PAGE_SIZE: int = 10

# ── Attachments ─────────────────────────────────────────────────────
MAX_ATTACHMENT_SIZE: int = 10 * 1024 * 1024  # 10 MB
MAX_FILES_PER_UPLOAD: int = 10
DOWNLOAD_URL_EXPIRY_SECONDS: int = 3600

ALLOWED_ATTACHMENT_TYPES: frozenset[str] = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
})

# ── Dashboard ───────────────────────────────────────────────────────
RECENT_ACTIVITY_LIMIT: int = 10
MY_TASKS_LIMIT: int = 5
