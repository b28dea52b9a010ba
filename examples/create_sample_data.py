#!/usr/bin/env python3
"""Create sample pickup calendars and a legacy schedule."""

from pathlib import Path

from pickup_calendar.examples import create_sample_data

if __name__ == "__main__":
    import tempfile

    # Create temporary directory
    temp_dir = Path(tempfile.mkdtemp(prefix="pickup_sample_"))
    print(f"Creating sample data in: {temp_dir}\n")

    store = create_sample_data(temp_dir)
    for user_id in store.list_users():
        print(f"Created calendar for {user_id} at: {store.root_dir / (user_id + '.ics')}")

    print("\nSample data created successfully!")
    print("\nTry it with the command line tool:")
    print(f"  pickup-calendar --data-dir {store.root_dir} --user complex --now 2017-02-08T10:40 next")
    print(f"  pickup-calendar --data-dir {store.root_dir} --user migrated migrate {temp_dir / 'schedule.json'}")
    print(f"  pickup-calendar --data-dir {store.root_dir} serve")
