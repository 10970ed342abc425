"""Shared fixtures for the waitlist tests"""
from datetime import datetime, timezone

import pytest

from services.record_store import StoreError
from services.waitlist_service import WaitlistFormController

FIXED_NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


class FakeStore:
    """Record store double that remembers inserts and can be told to fail"""

    def __init__(self, error=None, on_insert=None):
        self.error = error
        self.on_insert = on_insert
        self.calls = []

    def insert(self, collection, record):
        self.calls.append((collection, record))
        if self.on_insert:
            self.on_insert()
        if self.error:
            raise self.error
        return dict(record, id=len(self.calls))


class FakeTask:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Collects scheduled callbacks so tests decide when time passes"""

    def __init__(self):
        self.tasks = []

    def schedule(self, delay, callback):
        task = FakeTask(delay, callback)
        self.tasks.append(task)
        return task

    def fire_all(self):
        for task in self.tasks:
            if not task.cancelled:
                task.callback()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def controller(store, scheduler):
    return WaitlistFormController(store=store, scheduler=scheduler, clock=lambda: FIXED_NOW)


def fill(controller, name='Ada', email='ada@example.com'):
    controller.update_field('name', name)
    controller.update_field('email', email)


def duplicate_error():
    return StoreError('23505', 'duplicate key value violates unique constraint "waitlist_email_key"')
