from .admins import AddAdminDialog, RemoveAdminDialog
from .base import Dialog, SessionRegistry
from .reconfigure import ReconfigureUserDialog
from .team_setup import TeamSetupDialog

__all__ = [
    "AddAdminDialog",
    "Dialog",
    "ReconfigureUserDialog",
    "RemoveAdminDialog",
    "SessionRegistry",
    "TeamSetupDialog",
]
