"""
RBAC dependencies for FastAPI routes
Role-based access control implemented as dependencies that run after authentication
"""
from fastapi import HTTPException, status, Request
import logging

logger = logging.getLogger(__name__)

RESOURCES_FOR_ROLES = {
    'admin': {
        'admin': ['read', 'write', 'delete'],
        'users': ['read', 'write', 'delete'],
        'locations': ['read', 'write', 'delete'],
        'catalog': ['read', 'write', 'delete'],
        'vendors': ['read', 'write', 'delete'],
        'products': ['read', 'write', 'delete'],
        'reviews': ['read', 'write', 'delete'],
        'favorites': ['read', 'write', 'delete'],
        'analytics': ['read'],
    },
    'vendor': {
        'locations': ['read'],
        'catalog': ['read'],
        'vendors': ['read'],
        'vendors/me': ['read', 'write', 'delete'],  # Only their own shop
        'products': ['read', 'write', 'delete'],  # Only their own listings
        'reviews': ['read', 'write', 'delete'],
        'favorites': ['read', 'write', 'delete'],
    },
    'user': {
        'locations': ['read'],
        'catalog': ['read'],
        'vendors': ['read'],
        'vendors/me': ['write'],  # Can register a shop
        'products': ['read'],
        'reviews': ['read', 'write', 'delete'],
        'favorites': ['read', 'write', 'delete'],
    }
}

def normalize_path(path: str) -> str:
    """Normalize request path for RBAC checking"""
    if path.startswith('/'):
        path = path[1:]

    segments = path.split('/')

    if len(segments) == 0:
        return path

    if segments[0] == 'admin':
        return 'admin'

    elif segments[0] == 'vendors':
        if len(segments) >= 2 and segments[1] == 'me':
            return 'vendors/me'
        return 'vendors'

    return segments[0]

def translate_method_to_action(method: str) -> str:
    """Map HTTP methods to RBAC actions"""
    method_permission_mapping = {
        'GET': 'read',
        'POST': 'write',
        'PUT': 'write',
        'PATCH': 'write',
        'DELETE': 'delete',
    }
    return method_permission_mapping.get(method.upper(), 'read')

def has_permission(user_role: str, resource_name: str, required_permission: str) -> bool:
    """Check if user role has permission for the resource and action"""
    if user_role not in RESOURCES_FOR_ROLES:
        return False

    user_permissions = RESOURCES_FOR_ROLES[user_role]

    if resource_name in user_permissions:
        return required_permission in user_permissions[resource_name]

    parent_resource = resource_name.split('/')[0] if '/' in resource_name else resource_name
    if parent_resource in user_permissions:
        return required_permission in user_permissions[parent_resource]

    return False

def require_permission(resource: str = None, permission: str = None):
    """
    Create an RBAC dependency that checks permissions

    Args:
        resource: Specific resource name (auto-detected if not provided)
        permission: Specific permission (auto-detected if not provided)
    """
    def check_rbac(request: Request):
        """RBAC dependency function"""
        try:
            current_user = getattr(request.state, 'current_user', None)
            if not current_user:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authentication required"
                )

            user_role = 'user'
            if isinstance(current_user, dict) and current_user.get('role'):
                user_role = current_user['role']
            else:
                user_role = getattr(current_user, 'role', None) or 'user'

            resource_name = resource or normalize_path(str(request.url.path))
            required_permission = permission or translate_method_to_action(request.method)

            logger.info(f"RBAC Check - User: {user_role}, Resource: {resource_name}, Permission: {required_permission}")

            if not has_permission(user_role, resource_name, required_permission):
                logger.warning(f"Access denied - User: {user_role}, Resource: {resource_name}, Permission: {required_permission}")
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Access denied. {user_role.title()} role does not have {required_permission} permission for {resource_name}"
                )

            return True

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"RBAC dependency error: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Authorization check failed"
            )

    return check_rbac

# Admin permissions
require_admin = require_permission("admin", "read")
require_admin_write = require_permission("admin", "write")
require_admin_delete = require_permission("admin", "delete")

# Reference data (admin only for write)
require_location_write = require_permission("locations", "write")
require_catalog_write = require_permission("catalog", "write")

# Shop management
require_vendor_register = require_permission("vendors/me", "write")
require_vendor_self = require_permission("vendors/me", "read")
require_vendor_self_delete = require_permission("vendors/me", "delete")

# Product permissions (vendors only)
require_product_write = require_permission("products", "write")
require_product_delete = require_permission("products", "delete")

# Reviews and favorites (any authenticated role)
require_review_write = require_permission("reviews", "write")
require_review_delete = require_permission("reviews", "delete")
require_favorite_read = require_permission("favorites", "read")
require_favorite_write = require_permission("favorites", "write")

# Dashboard
require_analytics = require_permission("analytics", "read")
