"""Sample data loaded into an empty user store."""

from __future__ import annotations

import logging

from .models import UserDraft
from .storage import UserStore

logger = logging.getLogger("usercrud.seed")

INITIAL_USERS = (
    UserDraft("John Doe", "john.doe@example.com", "+1234567890", "123 Main St, New York, NY"),
    UserDraft("Jane Smith", "jane.smith@example.com", "+1234567891", "456 Oak Ave, Los Angeles, CA"),
    UserDraft("Bob Johnson", "bob.johnson@example.com", "+1234567892", "789 Pine Rd, Chicago, IL"),
    UserDraft("Alice Brown", "alice.brown@example.com", "+1234567893", "321 Elm St, Houston, TX"),
    UserDraft("Charlie Wilson", "charlie.wilson@example.com", "+1234567894", "654 Maple Dr, Phoenix, AZ"),
    UserDraft("Diana Davis", "diana.davis@example.com", "+1234567895", "987 Cedar Ln, Philadelphia, PA"),
    UserDraft("Edward Miller", "edward.miller@example.com", "+1234567896", "147 Birch St, San Antonio, TX"),
    UserDraft("Fiona Garcia", "fiona.garcia@example.com", "+1234567897", "258 Spruce Ave, San Diego, CA"),
    UserDraft("George Martinez", "george.martinez@example.com", "+1234567898", "369 Willow Way, Dallas, TX"),
    UserDraft("Helen Rodriguez", "helen.rodriguez@example.com", "+1234567899", "741 Poplar Pl, San Jose, CA"),
)


def load_initial_users(store: UserStore) -> int:
    """Insert the sample users when ``store`` is empty and return how many were added."""

    if store.count() > 0:
        logger.debug("User store already populated; skipping sample data")
        return 0

    for draft in INITIAL_USERS:
        store.save(draft)
    logger.info("Loaded %d initial users into the database.", len(INITIAL_USERS))
    return len(INITIAL_USERS)


__all__ = ["INITIAL_USERS", "load_initial_users"]
