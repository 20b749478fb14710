from dxcrm.activity.models import UserActivityLog
from dxcrm.activity.service import FAILED_LOGIN, LOGIN, log_user_activity

__all__ = ["UserActivityLog", "FAILED_LOGIN", "LOGIN", "log_user_activity"]
