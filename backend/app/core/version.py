"""
Version management for the Talent Introductions API
"""

# API Version
API_VERSION = "1.0.0"

# Feature flags
FEATURES = {
    "introduction_requests": True,
    "introduction_stats": True,
    "profile_completeness": True,
}


def get_version_info():
    """Get version and feature information"""
    return {
        "version": API_VERSION,
        "features": FEATURES,
    }
