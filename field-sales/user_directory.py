# field-sales/user_directory.py
from typing import List

from sqlalchemy.orm import Session

import config
from models import User


def get_active_reps(db: Session) -> List[User]:
    """Every active rep, in a stable (id) order."""
    return (
        db.query(User)
        .filter(User.role == config.REP_ROLE, User.is_active.is_(True))
        .order_by(User.id)
        .all()
    )


def get_active_rep_ids(db: Session) -> List[str]:
    return [user.id for user in get_active_reps(db)]
