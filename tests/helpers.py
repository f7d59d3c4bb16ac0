"""Builders shared by the test modules."""
from datetime import date, datetime, timedelta

from models.bill import Bill, SpendType

D = date(2024, 3, 4)  # a Monday


def make_bill(amount=10.0, day=D, spend_type=SpendType.LOCAL, **kwargs):
    """Bill with a month key derived from its date unless one is given."""
    if 'month' not in kwargs and day is not None:
        kwargs['month'] = (day.year, day.month)
    return Bill(amount=amount, date=day, spend_type=spend_type, **kwargs)


def days_from(start, offsets):
    return [start + timedelta(days=offset) for offset in offsets]


def at_hour(hour):
    return datetime(2024, 3, 4, hour, 30)


def airtable_record(record_id='rec1', **fields):
    return {"id": record_id, "createdTime": "2024-03-04T12:00:00.000Z", "fields": fields}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK", text=""):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.reason = reason
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._payload


class FakeSession:
    """Stands in for requests.Session; serves queued responses and records calls."""

    def __init__(self, responses=None, handler=None):
        self.headers = {}
        self.calls = []
        self._responses = list(responses or [])
        self._handler = handler

    def queue(self, *responses):
        self._responses.extend(responses)

    def get(self, url, params=None, timeout=None):
        params = dict(params or {})
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self._handler is not None:
            return self._handler(url, params)
        return self._responses.pop(0)
