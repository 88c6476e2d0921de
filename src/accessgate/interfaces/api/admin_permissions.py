"""Permission codes guarding the admin API."""

PERMISSION_READ = "rbac:permission:read"
PERMISSION_MANAGE = "rbac:permission:manage"
DIRECT_PERMISSION_READ = "rbac:direct-permission:read"
DIRECT_PERMISSION_MANAGE = "rbac:direct-permission:manage"

ALL = (
    PERMISSION_READ,
    PERMISSION_MANAGE,
    DIRECT_PERMISSION_READ,
    DIRECT_PERMISSION_MANAGE,
)
