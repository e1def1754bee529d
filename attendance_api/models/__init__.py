from attendance_api.models.user import AccountStatus, Role, User
from attendance_api.models.profiles import PROFILE_MODELS, Admin, Staff, Student

__all__ = ["AccountStatus", "Role", "User", "Admin", "Staff", "Student", "PROFILE_MODELS"]
