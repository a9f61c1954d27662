"""
Sample services used across the service kernel tests.
"""

from service_kernel import EventEmitter, declare_events


class MemoryService:
    """In-memory record service implementing the standard methods."""

    def __init__(self):
        self.store = {}
        self.counter = 0
        self.setup_calls = []

    def find(self, params=None):
        return list(self.store.values())

    def get(self, id, params=None):
        return self.store[id]

    def create(self, data, params=None):
        self.counter += 1
        record = dict(data, id=self.counter)
        self.store[record["id"]] = record
        return record

    async def update(self, id, data, params=None):
        record = dict(data, id=id)
        self.store[id] = record
        return record

    def patch(self, id, data, params=None):
        if id is None:
            records = sorted(self.store.values(), key=lambda record: record["id"])
            for record in records:
                record.update(data)
            return records
        self.store[id].update(data)
        return self.store[id]

    def remove(self, id, params=None):
        return self.store.pop(id)

    def setup(self, app, path):
        self.setup_calls.append((app, path))


class FailingService:
    """Service whose create always fails."""

    def create(self, data, params=None):
        raise ValueError("cannot create")


@declare_events("created")
class SelfEmittingService(EventEmitter):
    """Service that emits its own created event."""

    def create(self, data, params=None):
        self.emit("created", data)
        return data


class SetupOnlyService:
    """Service exposing nothing but setup."""

    def __init__(self):
        self.calls = []

    def setup(self, app, path):
        self.calls.append((app, path))


