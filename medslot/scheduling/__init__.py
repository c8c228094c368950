"""
Scheduling core

Pure business logic for doctor appointment scheduling:
- HH:MM wall-clock arithmetic (timegrid.py)
- Effective availability for a date from weekly template + overrides (availability.py)
- Bookable slot generation (slots.py)
- Appointment status transitions (lifecycle.py)

Nothing here touches the database. Services in medslot.modules load ORM
rows and pass plain values in.
"""
