"""HTTP routers mounted by ``crm_portal.app``."""
