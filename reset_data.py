"""
reset_data.py
-------------
Utility script to clear all stored data (cars, customers, rentals, technical
history and admins) from the local data file.

This script is designed for development and testing purposes.

Usage:
    $ python reset_data.py

After running this script, you can repopulate sample data by executing:
    $ python seeds.py
"""

from car_rental.config import Config
from car_rental.models.store import Store


def main():
    """Empty every table and persist the cleared state to `DATA_PATH`."""
    store = Store(Config.DATA_PATH)
    store.clear()

    print(f"{Config.DATA_PATH} has been cleared.")
    print("Tip: Run `python seeds.py` to regenerate demo data.")


if __name__ == "__main__":
    main()
