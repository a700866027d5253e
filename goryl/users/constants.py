from goryl.common.logging_setup import get_logger

logger = get_logger("goryl.users")

USER_ACTIONS = {
    "suspend": "suspended",
    "ban": "banned",
    "activate": "active",
}

USERS_CSV_HEADER = ["User ID", "Name", "Email", "Role", "Status", "Location", "Joined", "Last Login"]
