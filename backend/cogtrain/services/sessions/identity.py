from typing import Dict, Iterable
import uuid

from cogtrain.models import User


def lookup_emails(user_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, str]:
    """Resolve emails for a batch of user ids.

    Unknown users and users without an email map to "" so one missing
    account never fails a whole leaderboard.
    """
    ids = list(dict.fromkeys(user_ids))
    emails = {uid: '' for uid in ids}
    if not ids:
        return emails
    for user in User.query.filter(User.id.in_(ids)).all():
        emails[user.id] = user.email or ''
    return emails
