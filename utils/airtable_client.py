"""Thin client for the Airtable REST API used by the proxy endpoints."""
import logging
from typing import Any, Dict, List, Optional

import requests

from config import Settings

logger = logging.getLogger(__name__)

AIRTABLE_API_URL = "https://api.airtable.com/v0"
ACTIVITIES_TABLE = "Tegevused"
RESTAURANTS_TABLE = "Restoran"
LINK_FIELD = "Toidud"
LINKED_DETAILS_FIELD = "ToidudDetails"
# Records per filterByFormula lookup
BATCH_SIZE = 100


class AirtableError(Exception):
    """Non-success response from Airtable."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class AirtableClient:
    """
    Reads tables from one Airtable base with a bearer token.
    Follows Airtable's `offset` pagination; never retries.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        settings.require_airtable()
        self.base_id = settings.airtable_base_id
        self.restaurant_view_id = settings.airtable_restaurant_view_id
        self.timeout = settings.airtable_timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {settings.airtable_api_key}"})

    def _table_url(self, table: str) -> str:
        return f"{AIRTABLE_API_URL}/{self.base_id}/{table}"

    def list_records(self, table: str, view: Optional[str] = None, formula: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetches every record of `table`, optionally through a view or a filter formula."""
        params: Dict[str, str] = {}
        if view:
            params["view"] = view
        if formula:
            params["filterByFormula"] = formula

        records: List[Dict[str, Any]] = []
        while True:
            response = self.session.get(self._table_url(table), params=params, timeout=self.timeout)
            if not response.ok:
                logger.error(f"Airtable API Error ({table}): {response.status_code} {response.text}")
                raise AirtableError(response.status_code, f"Airtable API error ({table}): {response.reason}")

            data = response.json()
            records.extend(data.get("records", []))
            offset = data.get("offset")
            if not offset:
                break
            params["offset"] = offset

        logger.info(f"Fetched {len(records)} records from Airtable table '{table}'.")
        return records

    def records_by_ids(self, table: str, record_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Looks up records by id in batches of 100 and returns them keyed by id."""
        found: Dict[str, Dict[str, Any]] = {}
        for start in range(0, len(record_ids), BATCH_SIZE):
            batch = record_ids[start:start + BATCH_SIZE]
            for record in self.list_records(table, formula=record_id_formula(batch)):
                found[record["id"]] = record
        return found

    def activities(self) -> List[Dict[str, Any]]:
        return self.list_records(ACTIVITIES_TABLE)

    def restaurant_activities(self) -> List[Dict[str, Any]]:
        """
        Activities from the restaurant view, each with its linked restaurant
        records embedded under `ToidudDetails`.
        """
        activities = self.list_records(ACTIVITIES_TABLE, view=self.restaurant_view_id)
        linked_ids = [rid for activity in activities for rid in activity.get("fields", {}).get(LINK_FIELD) or []]
        if not linked_ids:
            return activities

        # unique ids, first-seen order
        restaurants = self.records_by_ids(RESTAURANTS_TABLE, list(dict.fromkeys(linked_ids)))
        combined = []
        for activity in activities:
            fields = activity.get("fields", {})
            details = [restaurants[rid] for rid in fields.get(LINK_FIELD) or [] if rid in restaurants]
            combined.append({**activity, "fields": {**fields, LINKED_DETAILS_FIELD: details}})
        return combined


def record_id_formula(record_ids: List[str]) -> str:
    """OR(RECORD_ID()='a',RECORD_ID()='b',...)"""
    return "OR(" + ",".join(f"RECORD_ID()='{rid}'" for rid in record_ids) + ")"
