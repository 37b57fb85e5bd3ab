"""Application-wide constants."""

BRAND_NAME = "ServiceHub"

API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = (
    "Booking lifecycle, provider tier and commission engine for the "
    f"{BRAND_NAME} service marketplace."
)
API_VERSION = "1.0.0"

# Fallback reasons recorded when the caller does not provide one
DEFAULT_CANCELLATION_REASON = "Cancelled by service provider"
DEFAULT_RESCHEDULE_REASON = "Provider requested reschedule"
DEFAULT_RATE_CHANGE_REASON = "Admin rate adjustment"

# Singleton key for the tier commission table
COMMISSION_CONFIG_KEY = "provider_tiers"

CURRENCY = "GHS"
