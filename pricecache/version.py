# pricecache/version.py

SERVICE_NAME = "pricecache-api"
SERVICE_VERSION = "0.1.0"


def version_payload() -> dict:
    """Used by /version endpoints."""
    return {
        "service": f"{SERVICE_NAME}:{SERVICE_VERSION}",
        "service_version": SERVICE_VERSION,
    }
