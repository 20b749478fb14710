from dxcrm.identity.models import Account, Role

__all__ = ["Account", "Role"]
