"""SQLite-backed record of address pools, allocations and 'A' records."""

from __future__ import annotations

import os
import sqlite3
import threading
from enum import IntEnum
from pathlib import Path
from typing import Any, Iterable

from . import vlogger as log
from .utils import random_string

DB_FILE_NAME = "/app/ipamdb/cis_ipam.sqlite3"
REFERENCE_LENGTH = 16


class IPStatus(IntEnum):
    """State of an address in a pool."""

    ALLOCATED = 0
    AVAILABLE = 1


class StoreError(Exception):
    """Raised when the database cannot be opened or prepared."""


_CREATE_LABEL_MAP = """
CREATE TABLE IF NOT EXISTS label_map (
    "ipam_label" TEXT,
    "range" TEXT
)"""

_CREATE_IPADDRESS_RANGE = """
CREATE TABLE IF NOT EXISTS ipaddress_range (
    "ipaddress" TEXT PRIMARY KEY,
    "status" INT,
    "ipam_label" TEXT,
    "reference" TEXT UNIQUE
)"""

_CREATE_A_RECORDS = """
CREATE TABLE IF NOT EXISTS a_records (
    "ipaddress" TEXT,
    "hostname" TEXT
)"""


class DBStore:
    """Address pools per IPAM label, kept in an SQLite database."""

    def __init__(self, path: str | os.PathLike[str] = ":memory:") -> None:
        try:
            self._db = sqlite3.connect(
                str(path), check_same_thread=False, isolation_level=None
            )
        except sqlite3.Error as exc:
            raise StoreError(f"unable to open IPAM database {path}: {exc}") from exc
        self._lock = threading.RLock()
        self.create_tables()

    def __enter__(self) -> DBStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _execute(self, sql: str, params: Iterable[Any] = ()) -> None:
        with self._lock:
            self._db.execute(sql, tuple(params))

    def _query(self, sql: str, params: Iterable[Any] = ()) -> list[tuple]:
        with self._lock:
            return self._db.execute(sql, tuple(params)).fetchall()

    def _query_one(self, sql: str, params: Iterable[Any] = ()) -> tuple | None:
        with self._lock:
            return self._db.execute(sql, tuple(params)).fetchone()

    def create_tables(self) -> None:
        """Create the tables if they are missing."""
        for table, statement in (
            ("label_map", _CREATE_LABEL_MAP),
            ("ipaddress_range", _CREATE_IPADDRESS_RANGE),
            ("a_records", _CREATE_A_RECORDS),
        ):
            try:
                self._execute(statement)
            except sqlite3.Error as exc:
                log.error(
                    "[STORE] Unable to Create Table '%s' in Database: %s", table, exc
                )
                raise StoreError(f"unable to create table {table!r}: {exc}") from exc

    def insert_ips(self, ips: Iterable[str], ipam_label: str) -> None:
        """Add *ips* to the pool of *ipam_label* as available addresses."""
        for ip in ips:
            try:
                self._execute(
                    "INSERT INTO ipaddress_range(ipaddress, status, ipam_label, reference)"
                    " VALUES (?, ?, ?, ?)",
                    (ip, int(IPStatus.AVAILABLE), ipam_label,
                     random_string(REFERENCE_LENGTH)),
                )
            except sqlite3.Error as exc:
                log.error(
                    "[STORE] Unable to Insert row in Table 'ipaddress_range': %s", exc
                )

    def display_ip_records(self) -> list[tuple]:
        """Log every pool row at debug level and return the rows."""
        with self._lock:
            cursor = self._db.execute("SELECT * FROM ipaddress_range")
            columns = [column[0] for column in cursor.description]
            rows = cursor.fetchall()
        log.debug("[STORE] %s", columns)
        for ipaddress, status, ipam_label, reference in rows:
            log.debug("[STORE] %s %s %s %s", ipaddress, status, ipam_label, reference)
        return rows

    def allocate_ip(self, ipam_label: str, reference: str) -> str | None:
        """Reserve the first available address of *ipam_label* for *reference*."""
        row = self._query_one(
            "SELECT ipaddress FROM ipaddress_range WHERE status=? AND ipam_label=?"
            " ORDER BY ipaddress ASC LIMIT 1",
            (int(IPStatus.AVAILABLE), ipam_label),
        )
        if row is None:
            log.info("[STORE] No Available IP Addresses to Allocate for label %s",
                     ipam_label)
            return None
        ipaddress = row[0]
        try:
            self._execute(
                "UPDATE ipaddress_range SET status=?, reference=? WHERE ipaddress=?",
                (int(IPStatus.ALLOCATED), reference, ipaddress),
            )
        except sqlite3.Error as exc:
            log.error("[STORE] Unable to update row in Table 'ipaddress_range': %s", exc)
        return ipaddress

    def release_ip(self, ip: str) -> None:
        """Return *ip* to its pool under a fresh random reference."""
        try:
            self._execute(
                "UPDATE ipaddress_range SET status=?, reference=? WHERE ipaddress=?",
                (int(IPStatus.AVAILABLE), random_string(REFERENCE_LENGTH), ip),
            )
        except sqlite3.Error as exc:
            log.error("[STORE] Unable to update row in Table 'ipaddress_range': %s", exc)

    def get_ip_address_from_a_record(self, ipam_label: str, hostname: str) -> str | None:
        """Return the allocated address that an 'A' record of *hostname* points to."""
        row = self._query_one(
            "SELECT ipaddress FROM a_records WHERE hostname=?"
            " ORDER BY ipaddress ASC LIMIT 1",
            (hostname,),
        )
        if row is None:
            return None
        ipaddress = row[0]
        status_row = self._query_one(
            "SELECT status FROM ipaddress_range WHERE ipaddress=? AND ipam_label=?"
            " ORDER BY ipaddress ASC LIMIT 1",
            (ipaddress, ipam_label),
        )
        if status_row is None:
            log.error("Unable to fetch IPAddress from 'A' record %s", hostname)
            return None
        if status_row[0] == IPStatus.AVAILABLE:
            return None
        return ipaddress

    def get_ip_address_from_reference(self, ipam_label: str, reference: str) -> str | None:
        """Return the address allocated to *reference* within *ipam_label*."""
        row = self._query_one(
            "SELECT ipaddress, status FROM ipaddress_range"
            " WHERE reference=? AND ipam_label=? ORDER BY ipaddress ASC LIMIT 1",
            (reference, ipam_label),
        )
        if row is None:
            return None
        ipaddress, status = row
        if status == IPStatus.AVAILABLE:
            return None
        return ipaddress

    def create_a_record(self, hostname: str, ip_addr: str) -> bool:
        try:
            self._execute(
                "INSERT INTO a_records(ipaddress, hostname) VALUES (?, ?)",
                (ip_addr, hostname),
            )
        except sqlite3.Error as exc:
            log.error("[STORE] Unable to Insert row in Table 'a_records': %s", exc)
            return False
        return True

    def delete_a_record(self, hostname: str, ip_addr: str) -> bool:
        try:
            self._execute(
                "DELETE FROM a_records WHERE ipaddress=? AND hostname=?",
                (ip_addr, hostname),
            )
        except sqlite3.Error as exc:
            log.error("[STORE] Unable to Delete row from Table 'a_records': %s", exc)
            return False
        return True

    def get_label_map(self) -> dict[str, str]:
        """Return the configured range of every known label."""
        return dict(self._query('SELECT ipam_label, "range" FROM label_map'))

    def add_label(self, label: str, ip_range: str) -> bool:
        try:
            self._execute(
                'INSERT INTO label_map(ipam_label, "range") VALUES (?, ?)',
                (label, ip_range),
            )
        except sqlite3.Error as exc:
            log.error("[STORE] Unable to Insert row in Table 'label_map': %s", exc)
            return False
        return True

    def remove_label(self, label: str) -> bool:
        try:
            self._execute("DELETE FROM label_map WHERE ipam_label=?", (label,))
        except sqlite3.Error as exc:
            log.error("[STORE] Unable to Delete label: %s: %s", label, exc)
            return False
        return True

    def clean_up_label(self, label: str) -> None:
        """Delete a label with its addresses and the 'A' records that use them."""
        rows = self._query(
            "SELECT ipaddress FROM ipaddress_range WHERE ipam_label=?", (label,)
        )
        for (ip_addr,) in rows:
            try:
                self._execute("DELETE FROM a_records WHERE ipaddress=?", (ip_addr,))
            except sqlite3.Error as exc:
                log.debug("%s", exc)
        try:
            self._execute("DELETE FROM ipaddress_range WHERE ipam_label=?", (label,))
        except sqlite3.Error as exc:
            log.debug("%s", exc)
        self.remove_label(label)

    def close(self) -> None:
        with self._lock:
            self._db.close()


def new_store(path: str | os.PathLike[str] = DB_FILE_NAME) -> DBStore:
    """Open the database at *path*, creating the file if it does not exist."""
    db_path = Path(path)
    try:
        os.stat(db_path)
    except FileNotFoundError:
        log.debug("[STORE] Creating IPAM DB file in mount path")
        try:
            db_path.touch(mode=0o660)
        except OSError as exc:
            log.error("[STORE] Unable to create IPAM DB file: %s", exc)
            raise StoreError(f"unable to create IPAM DB file {db_path}: {exc}") from exc
    except PermissionError as exc:
        log.error(
            "[STORE] Unable to read IPAM DB file due to permission issue: %s", exc
        )
        raise StoreError(f"no permission to read IPAM DB file {db_path}") from exc
    except OSError as exc:
        log.error("[STORE] Unable to verify IPAM DB file: %s", exc)
        raise StoreError(f"unable to verify IPAM DB file {db_path}: {exc}") from exc
    else:
        log.debug("[STORE] Using IPAM DB file from mount path")
    return DBStore(db_path)