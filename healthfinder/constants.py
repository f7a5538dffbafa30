"""Clinic vocabulary and review bounds shared by models, schemas and services."""

# ── Operation categories (clinic_operation) ───────────────────────────────
EMERGENCY_OPERATIONS = (
    "Akutmottagning",
    "Närakut",
    "Jourmottagning",
    "Barnakutmottagning",
)
REGULAR_CARE_OPERATION = "Vårdcentral"

# clinicType filter values
CLINIC_TYPE_EMERGENCY = "emg"
CLINIC_TYPE_REGULAR = "reg"

# ── Open hours / drop-in descriptors ──────────────────────────────────────
OPEN_AROUND_THE_CLOCK = "Dygnet runt"
# Closed/unspecified sentinel used by both open_hours and drop_in
UNSPECIFIED = "Uppgift saknas"

# openHours filter values
OPEN_HOURS_ALL = "all"
OPEN_HOURS_OTHER = "other"

# ── Review bounds ─────────────────────────────────────────────────────────
RATING_MIN = 1
RATING_MAX = 5
REVIEW_MIN_LENGTH = 5
REVIEW_MAX_LENGTH = 300
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 26
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 60
