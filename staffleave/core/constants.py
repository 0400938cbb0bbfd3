"""
Service-wide constants
"""

SERVICE_NAME = "staff-leave-service"

# Audit actor used when no authenticated actor is available (background jobs, failed logins)
SYSTEM_ACTOR_ID = "system"
SYSTEM_ACTOR_NAME = "System"
SYSTEM_ACTOR_ROLE = "SYSTEM"

# Provenance placeholder when the request carries no address or client identifier
UNKNOWN_PROVENANCE = "unknown"
