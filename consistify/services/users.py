# consistify/services/users.py
"""
User accounts and the reminder list.

list_reminder_recipients is read by the external daily reminder cron, which
owns delivery; nothing in the HTTP app calls it.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List

from consistify.models.task import Task
from consistify.models.user import User
from consistify.repositories.base import Store
from consistify.schemas.user import UserSettingsUpdate, VerifiedIdentity


async def upsert_user(store: Store, identity: VerifiedIdentity) -> User:
    """Find the user behind a verified identity, creating it on first sign-in."""
    user = await store.users.get_by_google_id(identity.google_id)
    if user is None:
        user = await store.users.get_by_email(identity.email)

    now = datetime.now(timezone.utc)
    if user is None:
        user = await store.users.add(User(
            google_id=identity.google_id,
            email=identity.email,
            name=identity.name,
            picture=identity.picture,
            show_in_activity_feed=True,
            reminder_enabled=True,
            timezone="UTC",
            last_active_at=now,
        ))
    else:
        user.google_id = identity.google_id
        user.name = identity.name
        user.picture = identity.picture
        user.last_active_at = now
        await store.users.save(user)
    await store.commit()
    return user


async def update_settings(store: Store, user: User, settings_in: UserSettingsUpdate) -> User:
    # Only fields the client actually sent
    for field, value in settings_in.model_dump(exclude_none=True).items():
        setattr(user, field, value)
    await store.users.save(user)
    await store.commit()
    return user


@dataclass
class ReminderRecipient:
    user: User
    goal_title: str
    task: Task


async def list_reminder_recipients(store: Store) -> List[ReminderRecipient]:
    """Users with reminders on whose active goal still has a task today."""
    recipients = []
    for user in await store.users.list_with_reminders():
        goal = await store.goals.get_active_for_user(user.id)
        if goal is None:
            continue
        task = await store.tasks.first_pending(goal.id)
        if task is not None:
            recipients.append(ReminderRecipient(user=user, goal_title=goal.title, task=task))
    return recipients
