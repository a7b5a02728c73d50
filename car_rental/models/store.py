import copy
import logging
import os
import pickle
import threading
from contextlib import contextmanager
from typing import Iterable, Optional

from ..utils.dates import now_iso

logger = logging.getLogger(__name__)

TABLES = ("cars", "customers", "rentals", "technical_history", "admins")


class Store:
    """
    In-process tables for cars, customers, rentals, technical history and admins.

    Rows are plain dicts keyed by an auto-incrementing integer id. Getters hand
    out copies; every write goes through a method here so it can be persisted
    and rolled back. When `path` is set the tables are pickled to that file
    after each write (or once per outermost transaction).
    """

    def __init__(self, path: str | os.PathLike | None = None):
        self.path = str(path) if path else None
        self.cars: dict[int, dict] = {}
        self.customers: dict[int, dict] = {}
        self.rentals: dict[int, dict] = {}
        self.technical_history: dict[int, dict] = {}
        self.admins: dict[int, dict] = {}
        self._seq = {name: 0 for name in TABLES}
        self._rw = threading.RLock()
        self._tx_depth = 0

        logger.info("Using store file: %s", self.path or "<memory>")
        self._load()

    # ---------- Persistence ----------
    def _load(self):
        """Load data from the pickle file, or start empty if unavailable or invalid."""
        if not self.path or not os.path.exists(self.path):
            return
        try:
            with open(self.path, "rb") as f:
                data = pickle.load(f)
        except (OSError, pickle.UnpicklingError, EOFError) as e:
            logger.warning("Load failed (%s); starting empty.", e)
            return

        if isinstance(data, dict) and "tables" in data:
            for name in TABLES:
                setattr(self, name, data["tables"].get(name, {}) or {})
            self._seq.update(data.get("seq") or {})
            logger.info(
                "Loaded: cars=%d, customers=%d, rentals=%d",
                len(self.cars), len(self.customers), len(self.rentals),
            )
        else:
            # Incompatible data format: back up the old file and start empty
            bak = self.path + ".bak"
            os.replace(self.path, bak)
            logger.warning("Incompatible store (%s); backed up to %s. Starting empty.", type(data).__name__, bak)

    def _dump(self):
        """Write the in-memory data to the pickle file safely (atomic replace)."""
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp = self.path + ".tmp"
        payload = {
            "tables": {name: getattr(self, name) for name in TABLES},
            "seq": dict(self._seq),
        }
        with open(tmp, "wb") as f:
            pickle.dump(payload, f, protocol=pickle.HIGHEST_PROTOCOL)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

    def clear(self):
        with self.transaction():
            for name in TABLES:
                getattr(self, name).clear()
                self._seq[name] = 0

    # ---------- Unit of work ----------
    def _snapshot(self) -> dict:
        return {
            "tables": {name: copy.deepcopy(getattr(self, name)) for name in TABLES},
            "seq": dict(self._seq),
        }

    def _restore(self, snap: dict):
        for name in TABLES:
            setattr(self, name, snap["tables"][name])
        self._seq = snap["seq"]

    @contextmanager
    def transaction(self):
        """
        Run a block of reads and writes as one unit.

        The store lock is held for the whole block, so a check followed by a
        write cannot interleave with another writer. The outermost block owns
        the snapshot: if the block raises, or persisting its result fails,
        every table is restored to its state on entry. Nested blocks join the
        outer one.
        """
        with self._rw:
            if self._tx_depth:
                self._tx_depth += 1
                try:
                    yield self
                finally:
                    self._tx_depth -= 1
                return

            snap = self._snapshot()
            self._tx_depth = 1
            try:
                yield self
                self._dump()
            except BaseException:
                self._restore(snap)
                logger.debug("Transaction rolled back")
                raise
            finally:
                self._tx_depth = 0

    # ---------- Generic row helpers ----------
    # Every write runs in a transaction, so a standalone write whose dump
    # fails leaves memory as it was.
    def _insert(self, table: str, row: dict) -> int:
        with self.transaction():
            self._seq[table] += 1
            rid = self._seq[table]
            row = dict(row)
            row["id"] = rid
            row.setdefault("created_at", now_iso())
            getattr(self, table)[rid] = row
            return rid

    def _get(self, table: str, rid) -> Optional[dict]:
        with self._rw:
            row = getattr(self, table).get(_key(rid))
            return dict(row) if row is not None else None

    def _update(self, table: str, rid, updates: dict) -> bool:
        with self.transaction():
            row = getattr(self, table).get(_key(rid))
            if row is None:
                return False
            row.update({k: v for k, v in updates.items() if k not in ("id", "created_at")})
            return True

    def _delete(self, table: str, rid) -> bool:
        with self.transaction():
            rows = getattr(self, table)
            key = _key(rid)
            if key not in rows:
                return False
            del rows[key]
            return True

    def _select(self, table: str, predicate=None) -> list[dict]:
        with self._rw:
            rows = getattr(self, table).values()
            return [dict(r) for r in rows if predicate is None or predicate(r)]

    # ---------- Cars ----------
    def create_car(self, data: dict) -> int:
        return self._insert("cars", data)

    def get_car(self, car_id) -> Optional[dict]:
        return self._get("cars", car_id)

    def list_cars(self) -> list[dict]:
        return self._select("cars")

    def find_car_by_plate(self, plate: str, exclude_id=None) -> Optional[dict]:
        wanted = _norm(plate)
        for car in self._select("cars", lambda c: _norm(c.get("license_plate")) == wanted):
            if car["id"] != _key(exclude_id):
                return car
        return None

    def update_car(self, car_id, **updates) -> bool:
        return self._update("cars", car_id, updates)

    def update_car_status(self, car_id, status: str) -> bool:
        return self._update("cars", car_id, {"status": status})

    def delete_car(self, car_id) -> bool:
        """Delete a car with its technical history and remaining rentals."""
        with self.transaction():
            key = _key(car_id)
            if key not in self.cars:
                return False
            self.technical_history = {
                hid: h for hid, h in self.technical_history.items() if h.get("car_id") != key
            }
            self.rentals = {rid: r for rid, r in self.rentals.items() if r.get("car_id") != key}
            del self.cars[key]
            return True

    # ---------- Customers ----------
    def create_customer(self, data: dict) -> int:
        return self._insert("customers", data)

    def get_customer(self, customer_id) -> Optional[dict]:
        return self._get("customers", customer_id)

    def list_customers(self) -> list[dict]:
        return self._select("customers")

    def find_customer_by_email(self, email: str, exclude_id=None) -> Optional[dict]:
        wanted = _norm(email)
        for cu in self._select("customers", lambda c: _norm(c.get("email")) == wanted):
            if cu["id"] != _key(exclude_id):
                return cu
        return None

    def update_customer(self, customer_id, **updates) -> bool:
        return self._update("customers", customer_id, updates)

    def delete_customer(self, customer_id) -> bool:
        """Delete a customer together with its remaining rentals."""
        with self.transaction():
            key = _key(customer_id)
            if key not in self.customers:
                return False
            self.rentals = {rid: r for rid, r in self.rentals.items() if r.get("customer_id") != key}
            del self.customers[key]
            return True

    # ---------- Rentals ----------
    def create_rental(self, data: dict) -> int:
        return self._insert("rentals", data)

    def get_rental(self, rental_id) -> Optional[dict]:
        return self._get("rentals", rental_id)

    def list_rentals(self, status: str | None = None) -> list[dict]:
        if status is None:
            return self._select("rentals")
        return self._select("rentals", lambda r: r.get("status") == status)

    def rentals_for_car(self, car_id, statuses: Iterable[str] | None = None, exclude_id=None) -> list[dict]:
        key, skip = _key(car_id), _key(exclude_id)
        wanted = set(statuses) if statuses is not None else None
        return self._select(
            "rentals",
            lambda r: r.get("car_id") == key
            and r.get("id") != skip
            and (wanted is None or r.get("status") in wanted),
        )

    def rentals_for_customer(self, customer_id, statuses: Iterable[str] | None = None) -> list[dict]:
        key = _key(customer_id)
        wanted = set(statuses) if statuses is not None else None
        return self._select(
            "rentals",
            lambda r: r.get("customer_id") == key and (wanted is None or r.get("status") in wanted),
        )

    def update_rental(self, rental_id, updates: dict) -> bool:
        return self._update("rentals", rental_id, updates)

    def delete_rental(self, rental_id) -> bool:
        return self._delete("rentals", rental_id)

    # ---------- Technical history (append-only) ----------
    def append_history(self, entry: dict) -> int:
        return self._insert("technical_history", entry)

    def history_for_car(self, car_id) -> list[dict]:
        key = _key(car_id)
        return self._select("technical_history", lambda h: h.get("car_id") == key)

    # ---------- Admins ----------
    def create_admin(self, data: dict) -> int:
        return self._insert("admins", data)

    def get_admin(self, admin_id) -> Optional[dict]:
        return self._get("admins", admin_id)

    def find_admin(self, email: str) -> Optional[dict]:
        wanted = _norm(email)
        for admin in self._select("admins", lambda a: _norm(a.get("email")) == wanted):
            return admin
        return None


def _key(value):
    """Table keys are ints; accept numeric strings from URLs and forms."""
    if value is None or isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return value


def _norm(value) -> str:
    return (value or "").strip().lower()
