from .overlap import overlaps, find_conflicts
from .availability import (
    AvailabilityResult,
    check_staff_availability,
    check_multiple_staff_availability,
    get_staff_conflicts_for_date,
)
from .sync import SyncEvent, SyncNotifier, ChangeTracker
