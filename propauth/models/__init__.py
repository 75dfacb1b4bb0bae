from propauth.models.ownership import UnitOwnership
from propauth.models.property import Apartment, Building, BuildingAssignment, Floor, Villa, VillaAssignment
from propauth.models.security import Permission, Role, User, role_permissions
from propauth.models.sidebar import PagePermission, RolePagePermission, SidebarPage
from propauth.models.tenancy import FinancialTransaction, Tenant, TenantPlacement, VillaTenancy

__all__ = [
    "Apartment",
    "Building",
    "BuildingAssignment",
    "FinancialTransaction",
    "Floor",
    "PagePermission",
    "Permission",
    "Role",
    "RolePagePermission",
    "SidebarPage",
    "Tenant",
    "TenantPlacement",
    "UnitOwnership",
    "User",
    "Villa",
    "VillaAssignment",
    "VillaTenancy",
    "role_permissions",
]
